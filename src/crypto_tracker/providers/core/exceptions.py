"""Exceptions raised by market data clients."""


class TransportError(Exception):
    """Network or HTTP failure talking to the remote market data API.

    `status_code` is set when the server answered with a non-success status;
    `timed_out` is set when the request never completed in time.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


class SchemaError(TransportError):
    """The remote API answered, but the payload does not match the expected shape."""

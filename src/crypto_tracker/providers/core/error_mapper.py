"""Domain concept for mapping client exceptions to HTTP responses."""
from dataclasses import dataclass

from fastapi import HTTPException

from crypto_tracker.providers.core.exceptions import SchemaError, TransportError


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps market data client exceptions to HTTP (status_code, detail).

    Inject this into routes that call the client directly so upstream failures
    surface with a consistent status and message.
    """

    resource_name: str = "Resource"
    api_name: str = "API"

    def to_http(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> tuple[int, str]:
        """Map a client exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by the client.
            symbol: Optional identifier to include in detail (e.g. "bitcoin").

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, ValueError):
            return (422, str(exc) or "Invalid request")
        if isinstance(exc, SchemaError):
            return (502, f"{self.api_name} returned an unexpected payload")
        if isinstance(exc, TransportError):
            if exc.timed_out:
                if symbol is not None:
                    return (504, f"Request to {self.api_name} timed out for '{symbol}'")
                return (504, "Request timed out")
            status = exc.status_code
            if status == 404:
                detail = (
                    f"{self.resource_name} not found"
                    if symbol is None
                    else f"{self.resource_name} '{symbol}' not found"
                )
                return (404, detail)
            if status is None or status >= 500:
                return (502, f"{self.api_name} error")
            return (status, f"{self.api_name} error")
        return (500, "Internal server error")

    def raise_http(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> None:
        """Map client exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc, symbol=symbol)
        raise HTTPException(status_code=status_code, detail=detail) from exc

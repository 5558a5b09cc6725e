"""Classify transport and JSON-RPC failures into the gateway error taxonomy."""

import asyncio
import typing as t

import aiohttp

from ..domain.exceptions import (
    GatewayConnectivityError,
    GatewayError,
    GatewayProtocolError,
    RemoteJobNotFoundError,
)

# Connection-level failures: the daemon could not be reached or went away
_CONNECTIVITY_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientConnectionError,
    aiohttp.ServerDisconnectedError,
    asyncio.TimeoutError,
    ConnectionError,
)

_NOT_FOUND_MARKERS = ("not found", "no such")


class ErrorCategoriser:
    """Maps raw exceptions and JSON-RPC error objects to GatewayError types."""

    def categorise(self, exc: BaseException, method: str | None = None) -> GatewayError:
        """Wrap a transport exception raised while calling the daemon."""
        if isinstance(exc, GatewayError):
            return exc
        if isinstance(exc, _CONNECTIVITY_ERRORS):
            return GatewayConnectivityError(
                f"Daemon unreachable during {method}: {type(exc).__name__}: {exc}",
                method=method,
            )
        if isinstance(
            exc, (aiohttp.ClientPayloadError, aiohttp.ContentTypeError, ValueError)
        ):
            return GatewayProtocolError(
                f"Malformed response to {method}: {exc}", method=method
            )
        if isinstance(exc, aiohttp.ClientResponseError):
            return self.categorise_status(exc.status, method)
        return GatewayProtocolError(
            f"Unexpected failure during {method}: {type(exc).__name__}: {exc}",
            method=method,
        )

    def categorise_status(self, status: int, method: str | None = None) -> GatewayError:
        """Classify an HTTP status that carried no JSON-RPC error object."""
        if status >= 500:
            return GatewayConnectivityError(
                f"Daemon returned HTTP {status} for {method}", method=method
            )
        return GatewayProtocolError(
            f"Daemon rejected {method} with HTTP {status}", method=method
        )

    def categorise_rpc_error(
        self,
        error: t.Mapping[str, t.Any],
        method: str | None = None,
        handle: str | None = None,
    ) -> GatewayError:
        """Classify a JSON-RPC error object from the daemon."""
        code = error.get("code")
        message = str(error.get("message", "unknown error"))
        if handle and any(marker in message.lower() for marker in _NOT_FOUND_MARKERS):
            return RemoteJobNotFoundError(
                handle, method=method, code=code if isinstance(code, int) else None
            )
        return GatewayProtocolError(
            f"{method} failed: {message}",
            method=method,
            code=code if isinstance(code, int) else None,
        )

"""JSON-RPC gateway to an aria2 daemon over HTTP."""

import typing as t
import uuid

import aiohttp

from ..config.settings import Settings
from ..domain.exceptions import (
    GatewayError,
    GatewayNotInitialisedError,
    GatewayProtocolError,
)
from ..domain.jobs import JobSnapshot
from ..infrastructure.http import create_secure_connector
from ..infrastructure.logging import get_logger
from .base import BaseGateway
from .categoriser import ErrorCategoriser
from .parsing import parse_snapshots

if t.TYPE_CHECKING:
    import loguru

JSONRPC_CONTENT_TYPE = "application/json-rpc"

# Fields requested from tellActive/tellWaiting/tellStopped
SNAPSHOT_KEYS: t.Final[list[str]] = [
    "gid",
    "status",
    "totalLength",
    "completedLength",
    "downloadSpeed",
    "uploadSpeed",
    "infoHash",
    "files",
]


class Aria2Gateway(BaseGateway):
    """Talks to aria2's JSON-RPC interface.

    Every call is a single POST; nothing is retried here. Failures surface as
    GatewayConnectivityError, GatewayProtocolError or RemoteJobNotFoundError.

    When a secret is configured, "token:<secret>" is prepended to the params
    of every call, as aria2's --rpc-secret option requires.

    Usage:
        async with Aria2Gateway("http://localhost:6800/jsonrpc", secret="s3cret") as gw:
            print(await gw.version())

    Or with an injected session, which the gateway never closes:
        gateway = Aria2Gateway(url, session=session)
        await gateway.open()
    """

    def __init__(
        self,
        url: str = "http://localhost:6800/jsonrpc",
        secret: str | None = None,
        session: aiohttp.ClientSession | None = None,
        request_timeout: float | None = 30.0,
        categoriser: ErrorCategoriser | None = None,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the gateway.

        Args:
            url: Full JSON-RPC endpoint URL.
            secret: Value of the daemon's --rpc-secret, if any.
            session: HTTP session to use. If None, one is created on open().
            request_timeout: Per-request timeout imposed by the transport.
            categoriser: Error classifier. Defaults to ErrorCategoriser().
            logger: Logger for RPC traffic.
        """
        self._url = url
        self._secret = secret
        self._session = session
        self._owns_session = False
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._categoriser = categoriser or ErrorCategoriser()
        self._logger = logger

    @classmethod
    def from_settings(
        cls, settings: Settings, session: aiohttp.ClientSession | None = None
    ) -> "Aria2Gateway":
        return cls(url=settings.rpc_url, secret=settings.rpc_secret, session=session)

    @property
    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    async def __aenter__(self) -> "Aria2Gateway":
        await self.open()
        return self

    async def __aexit__(self, *args: t.Any) -> None:
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session if none was provided. Idempotent."""
        if self._session is not None and not self._session.closed:
            return
        connector = (
            create_secure_connector() if self._url.startswith("https") else None
        )
        self._session = aiohttp.ClientSession(connector=connector)
        self._owns_session = True

    async def close(self) -> None:
        """Close the session if this gateway created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            raise GatewayNotInitialisedError(
                "Aria2Gateway not initialised: use it as a context manager or call open()"
            )
        return self._session

    def _with_token(self, params: t.Sequence[t.Any]) -> list[t.Any]:
        if self._secret:
            return [f"token:{self._secret}", *params]
        return list(params)

    def _build_body(self, method: str, params: t.Sequence[t.Any]) -> dict[str, t.Any]:
        return {
            "jsonrpc": "2.0",
            "id": uuid.uuid4().hex,
            "method": method,
            "params": self._with_token(params),
        }

    async def _post(self, body: dict[str, t.Any], method: str) -> t.Any:
        session = self._require_session()
        try:
            async with session.post(
                self._url,
                json=body,
                headers={"Content-Type": JSONRPC_CONTENT_TYPE},
                timeout=self._timeout,
            ) as response:
                if response.status >= 500:
                    raise self._categoriser.categorise_status(response.status, method)
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    # aria2 answers errors with 4xx and a JSON body; anything
                    # else without JSON is a plain HTTP rejection
                    if response.status >= 400:
                        raise self._categoriser.categorise_status(
                            response.status, method
                        )
                    raise
        except GatewayError:
            raise
        except Exception as exc:
            raise self._categoriser.categorise(exc, method) from exc

        if not isinstance(payload, dict):
            raise GatewayProtocolError(
                f"Expected a JSON-RPC object for {method}", method=method
            )
        return payload

    async def call(
        self,
        method: str,
        params: t.Sequence[t.Any] = (),
        handle: str | None = None,
    ) -> t.Any:
        """Issue one JSON-RPC call and return its result.

        Args:
            method: aria2 method name, e.g. "aria2.tellActive".
            params: Positional params, without the token.
            handle: Job handle the call refers to, used to classify not-found.
        """
        self._logger.trace(f"RPC {method} {list(params)}")
        payload = await self._post(self._build_body(method, params), method)

        error = payload.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise GatewayProtocolError(f"Malformed error for {method}", method=method)
            raise self._categoriser.categorise_rpc_error(error, method, handle)
        if "result" not in payload:
            raise GatewayProtocolError(f"No result in response to {method}", method=method)
        return payload["result"]

    async def multicall(
        self, calls: t.Sequence[tuple[str, t.Sequence[t.Any]]]
    ) -> list[t.Any]:
        """Run several calls in one system.multicall request.

        Returns the results in call order. A fault in any entry is raised as
        the classified gateway error.
        """
        methods = [
            {"methodName": method, "params": self._with_token(params)}
            for method, params in calls
        ]
        payload = await self._post(
            {
                "jsonrpc": "2.0",
                "id": uuid.uuid4().hex,
                "method": "system.multicall",
                "params": [methods],
            },
            "system.multicall",
        )
        if payload.get("error") is not None:
            raise self._categoriser.categorise_rpc_error(
                payload["error"], "system.multicall"
            )

        results = payload.get("result")
        if not isinstance(results, list) or len(results) != len(calls):
            raise GatewayProtocolError(
                "Unexpected system.multicall result", method="system.multicall"
            )

        unwrapped = []
        for (method, _), entry in zip(calls, results):
            if isinstance(entry, list) and len(entry) == 1:
                unwrapped.append(entry[0])
            elif isinstance(entry, dict) and "faultCode" in entry:
                raise self._categoriser.categorise_rpc_error(
                    {"code": entry.get("faultCode"), "message": entry.get("faultString")},
                    method,
                )
            else:
                raise GatewayProtocolError(
                    f"Unexpected multicall entry for {method}", method=method
                )
        return unwrapped

    def _expect(self, value: t.Any, kind: type, method: str) -> t.Any:
        if not isinstance(value, kind):
            raise GatewayProtocolError(
                f"{method} returned {type(value).__name__}, expected {kind.__name__}",
                method=method,
            )
        return value

    async def _query(self, method: str, params: t.Sequence[t.Any]) -> list[JobSnapshot]:
        result = await self.call(method, params)
        try:
            return parse_snapshots(result)
        except (TypeError, ValueError) as exc:
            raise GatewayProtocolError(
                f"Unexpected {method} result: {exc}", method=method
            ) from exc

    async def add_job(
        self, locator: str, options: t.Mapping[str, str] | None = None
    ) -> str:
        method = "aria2.addUri"
        result = await self.call(method, [[locator], dict(options or {})])
        handle = self._expect(result, str, method)
        if not handle:
            raise GatewayProtocolError(f"{method} returned an empty handle", method=method)
        self._logger.debug(f"Daemon accepted {locator} as {handle}")
        return handle

    async def query_status(self, handle: str) -> str:
        method = "aria2.tellStatus"
        result = await self.call(method, [handle, ["gid", "status"]], handle=handle)
        status = self._expect(result, dict, method).get("status")
        return str(status) if status else ""

    async def query_active(self) -> list[JobSnapshot]:
        return await self._query("aria2.tellActive", [SNAPSHOT_KEYS])

    async def query_waiting(self, offset: int, count: int) -> list[JobSnapshot]:
        return await self._query("aria2.tellWaiting", [offset, count, SNAPSHOT_KEYS])

    async def query_stopped(self, offset: int, count: int) -> list[JobSnapshot]:
        return await self._query("aria2.tellStopped", [offset, count, SNAPSHOT_KEYS])

    async def _handle_call(self, method: str, handle: str) -> bool:
        result = await self.call(method, [handle], handle=handle)
        return bool(self._expect(result, str, method))

    async def pause(self, handle: str) -> bool:
        return await self._handle_call("aria2.pause", handle)

    async def resume(self, handle: str) -> bool:
        return await self._handle_call("aria2.unpause", handle)

    async def remove(self, handle: str) -> bool:
        return await self._handle_call("aria2.remove", handle)

    async def version(self) -> str:
        method = "aria2.getVersion"
        result = self._expect(await self.call(method), dict, method)
        return str(result.get("version") or "unknown")

"""Transport that makes RPCs over plain HTTP requests."""

from __future__ import annotations

import http.client
import random
import time
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import SplitResult, urlsplit

from yab.transport.interface import Protocol, Request, Response, Transport, TransportError

_DEFAULT_TTL = 1.0
_DEADLINE_EXCEEDED = "context deadline exceeded"


@dataclass
class HTTPOptions:
    """Options used to create an HTTP transport."""

    method: str = ""
    urls: list[str] = field(default_factory=list)
    source_service: str = ""
    target_service: str = ""
    routing_delegate: str = ""
    routing_key: str = ""
    shard_key: str = ""
    encoding: str = ""
    tracer: Any = None


def _canonical_header_key(key: str) -> str:
    return "-".join(part.capitalize() for part in key.split("-"))


class HTTPTransport(Transport):
    """Sends each request to one of the configured URLs, chosen at random."""

    def __init__(self, options: HTTPOptions) -> None:
        self._options = options

    def tracer(self) -> Any:
        return self._options.tracer

    def protocol(self) -> Protocol:
        return Protocol.HTTP

    def _headers(self, request: Request, ttl: float) -> list[tuple[str, str]]:
        opts = self._options
        headers = [
            ("RPC-Service", opts.target_service),
            ("RPC-Procedure", request.method),
            ("RPC-Caller", opts.source_service),
            ("RPC-Encoding", opts.encoding),
        ]
        if opts.routing_key:
            headers.append(("RPC-Routing-Key", opts.routing_key))
        if opts.routing_delegate:
            headers.append(("RPC-Routing-Delegate", opts.routing_delegate))
        if opts.shard_key:
            headers.append(("RPC-Shard-Key", opts.shard_key))
        headers.append(("Context-TTL-MS", str(int(ttl * 1000))))
        headers.extend((f"Rpc-Header-{key}", value) for key, value in request.headers.items())
        headers.extend(request.transport_headers.items())
        return headers

    def call(self, request: Request, timeout: float | None = None) -> Response:
        """Send the request; ``timeout`` in seconds bounds the whole call.

        Without a timeout the call has no deadline and advertises a TTL of one second.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        url = urlsplit(random.choice(self._options.urls))
        if url.scheme not in ("http", "https"):
            raise TransportError(f"unsupported protocol scheme {url.scheme!r}")

        if deadline is None:
            ttl, socket_timeout = _DEFAULT_TTL, None
        else:
            ttl = deadline - time.monotonic()
            if ttl <= 0:
                raise TransportError(_DEADLINE_EXCEEDED)
            socket_timeout = ttl

        headers = self._headers(request, ttl)
        connection_class = (
            http.client.HTTPSConnection if url.scheme == "https" else http.client.HTTPConnection
        )
        connection = connection_class(url.hostname or "", url.port, timeout=socket_timeout)
        try:
            return self._exchange(connection, url, headers, request.body)
        except TimeoutError as err:
            raise TransportError(_DEADLINE_EXCEEDED) from err
        except http.client.RemoteDisconnected as err:
            raise TransportError("EOF") from err
        except (OSError, http.client.HTTPException) as err:
            raise TransportError(str(err)) from err
        finally:
            connection.close()

    def _exchange(
        self,
        connection: http.client.HTTPConnection,
        url: SplitResult,
        headers: list[tuple[str, str]],
        body: bytes,
    ) -> Response:
        target = url.path or "/"
        if url.query:
            target = f"{target}?{url.query}"
        connection.putrequest(self._options.method, target, skip_accept_encoding=True)
        for key, value in headers:
            connection.putheader(key, value)
        connection.putheader("Content-Length", str(len(body)))
        connection.endheaders(body)

        response = connection.getresponse()
        read_error = None
        try:
            data = response.read()
        except http.client.IncompleteRead as err:
            data, read_error = err.partial, "unexpected EOF"

        if not 200 <= response.status < 300:
            raise TransportError(
                "HTTP call got non-success response code: "
                f"{response.status}, body: {data.decode('utf-8', errors='replace')}"
            )
        if read_error is not None:
            raise TransportError(f"failed to read HTTP response body: {read_error}")

        response_headers: dict[str, str] = {}
        for key, value in response.getheaders():
            response_headers.setdefault(_canonical_header_key(key), value)

        return Response(
            headers=response_headers,
            body=data,
            transport_fields={"statusCode": response.status},
        )


def new_http(options: HTTPOptions) -> HTTPTransport:
    """Create an HTTP transport, raising ValueError on invalid options."""
    if not options.urls:
        raise ValueError("specify at least one URL")
    if not options.target_service:
        raise ValueError("specify target service name")
    if not options.method:
        options = replace(options, method="POST")
    return HTTPTransport(options)
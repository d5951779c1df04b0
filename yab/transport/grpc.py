"""Transport that makes unary and streaming RPCs over gRPC."""

from __future__ import annotations

import itertools
import queue
import ssl
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import grpc

from yab.transport.interface import (
    Protocol,
    Request,
    Response,
    StreamRequest,
    StreamTransport,
    TransportCloser,
    TransportError,
)

_DEFAULT_TIMEOUT = 1.0
_END_OF_STREAM = object()


@dataclass
class GRPCOptions:
    """Options used to create a gRPC transport."""

    addresses: list[str] = field(default_factory=list)
    tracer: Any = None
    caller: str = ""
    encoding: str = ""
    routing_key: str = ""
    routing_delegate: str = ""
    max_response_size: int = 0
    ca_path: str = ""
    cert_path: str = ""
    private_key_path: str = ""


class GRPCError(TransportError):
    """A call failed with a gRPC status."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"code:{code} message:{message}")
        self.code = code
        self.message = message


def _from_rpc_error(err: grpc.RpcError) -> GRPCError:
    status = err.code() if hasattr(err, "code") else None
    details = err.details() if hasattr(err, "details") else None
    code = status.name.lower().replace("_", "-") if status is not None else "unknown"
    return GRPCError(code, details or "")


def _method_path(procedure: str) -> str:
    service, sep, method = procedure.partition("::")
    if not sep or not service or not method:
        raise ValueError(f"invalid procedure name: {procedure!r}, expected 'Service::Method'")
    return f"/{service}/{method}"


def _application_headers(metadata: Any) -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in metadata or ():
        if key.startswith(("rpc-", "grpc-")) or key == "content-type":
            continue
        headers.setdefault(key, value if isinstance(value, str) else value.decode())
    return headers


def _load_credentials(options: GRPCOptions) -> grpc.ChannelCredentials:
    try:
        ca = Path(options.ca_path).read_bytes()
    except OSError as err:
        raise TransportError(f"could not load ca {err}") from err
    if b"-----BEGIN CERTIFICATE-----" not in ca:
        raise TransportError("failed to append ca")
    try:
        ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT).load_cert_chain(
            options.cert_path, options.private_key_path
        )
        certificate = Path(options.cert_path).read_bytes()
        private_key = Path(options.private_key_path).read_bytes()
    except OSError as err:
        raise TransportError(f"failed to load X509 keypair {err}") from err
    return grpc.ssl_channel_credentials(
        root_certificates=ca, private_key=private_key, certificate_chain=certificate
    )


class ClientStream:
    """An open streaming call: messages are raw serialized bytes."""

    def __init__(self, multi_callable: Any, metadata: tuple, timeout: float | None) -> None:
        self._outgoing: queue.Queue = queue.Queue()
        self._send_closed = False
        self._call = multi_callable(self._requests(), timeout=timeout, metadata=metadata)

    def _requests(self) -> Iterator[bytes]:
        while (item := self._outgoing.get()) is not _END_OF_STREAM:
            yield item

    def send_message(self, body: bytes) -> None:
        """Queue a message to be sent to the server."""
        if self._send_closed:
            raise TransportError("cannot send on a stream whose send side is closed")
        self._outgoing.put(bytes(body))

    def receive_message(self) -> bytes:
        """Return the next message from the server, raising EOFError at the end."""
        try:
            return next(self._call)
        except StopIteration:
            raise EOFError("stream closed by server") from None
        except grpc.RpcError as err:
            raise _from_rpc_error(err) from err

    def close_send(self) -> None:
        """Signal that no more messages will be sent."""
        if not self._send_closed:
            self._send_closed = True
            self._outgoing.put(_END_OF_STREAM)

    def close(self) -> None:
        """Close the send side and cancel the call."""
        self.close_send()
        self._call.cancel()

    def __enter__(self) -> ClientStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class GRPCTransport(TransportCloser, StreamTransport):
    """Calls a gRPC service, spreading requests round robin over its peers."""

    def __init__(self, options: GRPCOptions, channels: list[grpc.Channel]) -> None:
        self._options = options
        self._channels = channels
        self._next = itertools.cycle(channels)
        self._lock = threading.Lock()

    def _channel(self) -> grpc.Channel:
        with self._lock:
            return next(self._next)

    def _metadata(self, request: Request) -> tuple[tuple[str, str], ...]:
        opts = self._options
        pairs = [
            ("rpc-caller", opts.caller),
            ("rpc-service", request.target_service),
            ("rpc-encoding", opts.encoding),
            ("rpc-shard-key", request.shard_key),
            ("rpc-routing-key", opts.routing_key),
            ("rpc-routing-delegate", opts.routing_delegate),
        ]
        pairs.extend((key.lower(), value) for key, value in request.headers.items())
        return tuple((key, value) for key, value in pairs if value)

    def tracer(self) -> Any:
        return self._options.tracer

    def protocol(self) -> Protocol:
        return Protocol.GRPC

    def call(self, request: Request, timeout: float | None = None) -> Response:
        """Make a unary call.

        The deadline is ``timeout`` if given, else the request's timeout,
        else one second.
        """
        if not request.target_service:
            raise ValueError("must specify grpc service")
        if not request.method:
            raise ValueError("must specify grpc procedure")
        if timeout is None:
            timeout = request.timeout if request.timeout > 0 else _DEFAULT_TIMEOUT

        unary = self._channel().unary_unary(_method_path(request.method))
        try:
            body, call = unary.with_call(
                request.body, timeout=timeout, metadata=self._metadata(request)
            )
        except grpc.RpcError as err:
            raise _from_rpc_error(err) from err
        return Response(headers=_application_headers(call.initial_metadata()), body=body or b"")

    def call_stream(self, request: StreamRequest, timeout: float | None = None) -> ClientStream:
        """Open a streaming call; without a timeout the stream has no deadline."""
        inner = request.request if request is not None else None
        if inner is None:
            raise ValueError("stream request must wrap a request")
        stream = self._channel().stream_stream(_method_path(inner.method))
        return ClientStream(stream, self._metadata(inner), timeout)

    def close(self) -> None:
        for channel in self._channels:
            channel.close()


def new_grpc(options: GRPCOptions) -> GRPCTransport:
    """Create a gRPC transport, raising ValueError on invalid options."""
    if not options.addresses:
        raise ValueError("must specify at least one grpc address")
    if options.tracer is None:
        raise ValueError("must specify grpc tracer")
    if not options.caller:
        raise ValueError("must specify grpc caller")

    channel_options = []
    if options.max_response_size > 0:
        channel_options.append(("grpc.max_receive_message_length", options.max_response_size))

    credentials = None
    if options.ca_path and options.cert_path and options.private_key_path:
        credentials = _load_credentials(options)

    if credentials is None:
        channels = [
            grpc.insecure_channel(address, options=channel_options)
            for address in options.addresses
        ]
    else:
        channels = [
            grpc.secure_channel(address, credentials, options=channel_options)
            for address in options.addresses
        ]
    return GRPCTransport(options, channels)
"""Core request, response and transport types shared by all transports."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any


class TransportError(Exception):
    """Raised when a transport fails to make a call."""


@dataclass
class Request:
    """The fields used to make an RPC.

    ``timeout`` is in seconds; zero means the transport's default applies.
    """

    target_service: str = ""
    method: str = ""
    timeout: float = 0.0
    headers: dict[str, str] = field(default_factory=dict)
    baggage: dict[str, str] = field(default_factory=dict)
    transport_headers: dict[str, str] = field(default_factory=dict)
    shard_key: str = ""
    body: bytes = b""


@dataclass
class StreamRequest:
    """Wrapper around a Request, used for streaming RPCs."""

    request: Request | None = None


@dataclass
class Response:
    """The result of an RPC."""

    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    transport_fields: dict[str, Any] = field(default_factory=dict)
    """Fields that are specific to the transport that produced the response."""


class Protocol(enum.IntEnum):
    """The wire protocol used to send a request."""

    UNKNOWN = 0
    TCHANNEL = 1
    HTTP = 2
    GRPC = 3


class Transport(abc.ABC):
    """A transport over which unary calls are made."""

    @abc.abstractmethod
    def call(self, request: Request, timeout: float | None = None) -> Response:
        """Make a unary call, raising TransportError on failure."""

    @abc.abstractmethod
    def protocol(self) -> Protocol:
        """Return the wire protocol of this transport."""

    @abc.abstractmethod
    def tracer(self) -> Any:
        """Return the tracer used for span propagation, if any."""


class StreamTransport(abc.ABC):
    """A transport that supports streaming calls."""

    @abc.abstractmethod
    def call_stream(self, request: StreamRequest, timeout: float | None = None) -> Any:
        """Open a client stream for the given request."""


class TransportCloser(Transport):
    """A transport that holds resources and must be closed."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the resources held by the transport."""

    def __enter__(self) -> TransportCloser:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
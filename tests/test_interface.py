import pytest

from yab.transport.interface import (
    Protocol,
    Request,
    Response,
    StreamRequest,
    StreamTransport,
    Transport,
    TransportCloser,
    TransportError,
)


class EchoTransport(TransportCloser):
    def __init__(self):
        self.closed = False

    def call(self, request, timeout=None):
        if not request.method:
            raise TransportError("missing method")
        return Response(headers=dict(request.headers), body=request.body)

    def protocol(self):
        return Protocol.HTTP

    def tracer(self):
        return None

    def close(self):
        self.closed = True


class EchoStream(StreamTransport):
    def call_stream(self, request, timeout=None):
        return [request.request.body]


@pytest.mark.parametrize(
    "value, want",
    [
        (0, Protocol.UNKNOWN),
        (1, Protocol.TCHANNEL),
        (2, Protocol.HTTP),
        (3, Protocol.GRPC),
    ],
)
def test_protocol_lookup_by_value(value, want):
    assert Protocol(value) is want


def test_protocol_unknown_value_rejected():
    with pytest.raises(ValueError):
        Protocol(4)


def test_request_defaults_are_independent():
    first = Request()
    second = Request()
    first.headers["k"] = "v"
    first.transport_headers["t"] = "x"
    assert second.headers == {}
    assert second.transport_headers == {}
    assert first.timeout == 0.0
    assert first.body == b""


def test_response_defaults_are_independent():
    first = Response()
    second = Response()
    first.transport_fields["ok"] = True
    assert second.transport_fields == {}


def test_stream_request_wraps_request():
    req = Request(method="m", body=b"abc")
    stream_req = StreamRequest(request=req)
    assert stream_req.request is req
    assert StreamRequest().request is None


def test_transport_is_abstract():
    with pytest.raises(TypeError):
        Transport()
    with pytest.raises(TypeError):
        TransportCloser()
    with pytest.raises(TypeError):
        StreamTransport()


def test_concrete_transport_call_round_trip():
    transport = EchoTransport()
    req = Request(method="echo", headers={"a": "b"}, body=b"\x01\x02")
    res = transport.call(req)
    assert res.body == req.body
    assert res.headers == req.headers
    assert transport.protocol() is Protocol.HTTP


def test_transport_error_propagates():
    transport = EchoTransport()
    with pytest.raises(TransportError, match="missing method"):
        transport.call(Request())


def test_transport_closer_context_manager_closes():
    with EchoTransport() as transport:
        res = transport.call(Request(method="m", body=b"payload"))
        assert res.body == b"payload"
        assert transport.closed is False
    assert transport.closed is True


def test_stream_transport_call_stream():
    stream = EchoStream()
    result = stream.call_stream(StreamRequest(Request(body=b"xyz")))
    assert result == [b"xyz"]
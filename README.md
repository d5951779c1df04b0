# yab

`yab` is a small library of client transports that send RPC requests to
services over HTTP and gRPC.

## Requests and responses

The shared types live in `yab.transport.interface`.

Each call takes a `Request`, which holds:

- `target_service` and `method`,
- `headers` and `transport_headers`,
- an optional `shard_key`,
- a `timeout` in seconds, where zero means the transport's default,
- a raw `body` of bytes.

Each call returns a `Response`, which holds:

- `headers`,
- `body`,
- a `transport_fields` dictionary of transport-specific values.

Each transport reports its wire protocol as a member of the `Protocol` enum:
`UNKNOWN`, `TCHANNEL`, `HTTP` or `GRPC`. A failed call raises
`TransportError`.

A `TransportCloser` can be used as a context manager. It is closed on exit.

## HTTP

```python
from yab.transport.http import HTTPOptions, new_http
from yab.transport.interface import Request

transport = new_http(HTTPOptions(
    urls=["http://localhost:8080/rpc"],
    source_service="caller",
    target_service="target",
    encoding="json",
))

response = transport.call(
    Request(method="Service::method", body=b'{"arg": 1}'),
    timeout=1.0,
)
print(response.body, response.transport_fields["statusCode"])
```

`new_http` raises `ValueError` when `HTTPOptions` has no URLs or no target
service. Requests are sent with `POST` unless `method` names another one.
When several URLs are given, each request goes to one of them, chosen at
random. Only `http` and `https` URLs are accepted.

Every request carries these headers:

- `RPC-Service`, `RPC-Procedure`, `RPC-Caller` and `RPC-Encoding`, always.
- `RPC-Routing-Key`, `RPC-Routing-Delegate` and `RPC-Shard-Key`, when they are set.
- `Context-TTL-MS`, the time left before the call's timeout. Without a timeout the call has no deadline and this header is one second.
- Application headers from `Request.headers`, with the prefix `Rpc-Header-`.
- The entries of `Request.transport_headers`, as given.

A response status outside the 2xx range raises `TransportError`. The error
includes the status code and the response body. A call that runs past its
timeout raises `TransportError("context deadline exceeded")`.

## gRPC

```python
from yab.transport.grpc import GRPCOptions, new_grpc
from yab.transport.interface import Request

with new_grpc(GRPCOptions(
    addresses=["127.0.0.1:5000"],
    tracer=object(),
    caller="caller",
    encoding="json",
)) as transport:
    response = transport.call(Request(
        target_service="example",
        method="Foo::Bar",
        body=b'{"One": "hello"}',
    ))
```

`new_grpc` raises `ValueError` unless it is given:

- at least one address,
- a tracer,
- a caller name.

Requests go to the addresses in turn, round robin.

If `max_response_size` is set, it limits the size of a received message.

Set all three of `ca_path`, `cert_path` and `private_key_path` to connect
over TLS. A certificate or key that cannot be loaded raises
`TransportError`.

The `method` must have the form `Service::Method`. The call is then sent to
the path `/Service/Method`.

A unary `call` uses the first of these that is set:

1. the `timeout` argument,
2. the request's `timeout`,
3. one second.

A call that fails with a gRPC status raises `GRPCError`. This is a
`TransportError` that carries `code` and `message`, for example
`code:resource-exhausted message:...`.

`call_stream` takes a `StreamRequest` and opens a `ClientStream`. Its
messages are raw serialized bytes, and it has these methods:

- `send_message(body)` queues a message for the server.
- `receive_message()` returns the next reply. It raises `EOFError` when the server ends the stream.
- `close_send()` signals that no more messages will be sent.
- `close()` closes the send side and cancels the call.

A stream opened without a timeout has no deadline. Close the transport with
`close`, or use it as a context manager.

## Request interceptors

A `RequestInterceptor` can change a request before it is sent. Only one
interceptor is active at a time.

- `register_interceptor` installs one. It returns a function that puts the previous interceptor back and returns the one it removed.
- `apply_interceptor` runs the active interceptor, or returns the request unchanged when none is installed.

```python
from yab.transport.request_interceptor import (
    RequestInterceptor,
    apply_interceptor,
    register_interceptor,
)


class AddHeader(RequestInterceptor):
    def apply(self, request):
        request.headers["foo"] = "bar"
        return request


restore = register_interceptor(AddHeader())
try:
    request = apply_interceptor(request)
finally:
    restore()
```

## What this package does not do

`yab` is a library only:

- It has no command-line program.
- It has no TChannel transport, although `Protocol.TCHANNEL` exists.
- It does not encode or decode Thrift or protobuf payloads.
- It does not parse JSON or YAML request bodies.

Bodies are sent and received as raw bytes.

The release string is available as `yab.version.VERSION`.
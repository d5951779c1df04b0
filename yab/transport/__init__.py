"""Transports that send RPC requests over HTTP or gRPC, and the request interceptor hook."""
"""Client transports for making RPC calls over HTTP and gRPC."""

__version__ = "0.22.0.dev0"
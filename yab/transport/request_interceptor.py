"""A single, globally registered hook that may modify requests before they are sent."""

from __future__ import annotations

import abc
from typing import Callable

from yab.transport.interface import Request


class RequestInterceptor(abc.ABC):
    """Modifies a pre-flight Request."""

    @abc.abstractmethod
    def apply(self, request: Request) -> Request:
        """Mutate and return the given request, or raise to abort it."""


_registered: RequestInterceptor | None = None


def register_interceptor(
    interceptor: RequestInterceptor | None,
) -> Callable[[], RequestInterceptor | None]:
    """Register the interceptor used by apply_interceptor.

    Only one interceptor is active at a time; registering replaces the
    previous one. Returns a function that restores the previous interceptor
    and gives back the one it removed.
    """
    global _registered
    previous = _registered
    _registered = interceptor

    def restore() -> RequestInterceptor | None:
        global _registered
        removed = _registered
        _registered = previous
        return removed

    return restore


def apply_interceptor(request: Request) -> Request:
    """Pass the request through the registered interceptor, if there is one."""
    if _registered is None:
        return request
    return _registered.apply(request)
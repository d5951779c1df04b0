import pytest

from yab.transport.interface import Request
from yab.transport.request_interceptor import (
    RequestInterceptor,
    apply_interceptor,
    register_interceptor,
)


class HeaderInterceptor(RequestInterceptor):
    def __init__(self, want_err=False):
        self.want_err = want_err

    def apply(self, request):
        request.headers["foo"] = "bar"
        if self.want_err:
            raise RuntimeError("bad apply")
        return request


def make_request():
    return Request(headers={"zim": "zam"}, method="get")


def test_registered_interceptor_applies():
    restore = register_interceptor(HeaderInterceptor())
    try:
        req = apply_interceptor(make_request())
    finally:
        restore()
    assert req.headers["zim"] == "zam"
    assert req.method == "get"
    assert req.headers["foo"] == "bar"


def test_registered_interceptor_error():
    restore = register_interceptor(HeaderInterceptor(want_err=True))
    try:
        with pytest.raises(RuntimeError, match="bad apply"):
            apply_interceptor(make_request())
    finally:
        restore()


def test_unregistered_interceptor_does_nothing():
    raw = make_request()
    req = apply_interceptor(raw)
    assert "foo" not in req.headers
    assert req is raw


def test_restore_removes_interceptor():
    restore = register_interceptor(HeaderInterceptor())
    restore()
    req = apply_interceptor(make_request())
    assert "foo" not in req.headers


class TagInterceptor(RequestInterceptor):
    def __init__(self, tag):
        self.tag = tag

    def apply(self, request):
        request.headers["tag"] = self.tag
        return request


def test_restore_returns_previous_interceptor():
    restore_outer = register_interceptor(TagInterceptor("outer"))
    try:
        restore_inner = register_interceptor(TagInterceptor("inner"))
        assert apply_interceptor(Request()).headers["tag"] == "inner"
        restore_inner()
        assert apply_interceptor(Request()).headers["tag"] == "outer"
    finally:
        restore_outer()
    assert "tag" not in apply_interceptor(Request()).headers
"""Tests for the middleware Stack."""

import pytest

from micro_dispatch import CallableHandler, CallableMiddleware, InternalConsistencyError, Request, Response, Stack


@pytest.fixture
def terminal(trace):
    """Terminal handler recording its invocation."""

    def handle(request):
        trace.append("handler")
        return Response(body=request.body)

    return CallableHandler(handle)


class TestStack:
    """Test chain composition."""

    def test_onion_order(self, recorder, terminal, trace):
        """Middleware wraps the handler outermost-first."""
        stack = Stack([recorder("outer"), recorder("inner")], terminal)

        response = stack.handle(Request(body="payload"))

        assert response.body == "payload"
        assert trace == ["outer:in", "inner:in", "handler", "inner:out", "outer:out"]

    def test_empty_middleware_calls_handler(self, terminal, trace):
        """Without middleware the handler runs directly."""
        Stack([], terminal).handle(Request())

        assert trace == ["handler"]

    def test_short_circuit(self, recorder, terminal, trace):
        """A middleware that does not delegate stops the chain."""
        blocker = CallableMiddleware(lambda request, handler: Response(status_code=403))
        stack = Stack([recorder("outer"), blocker, recorder("never")], terminal)

        response = stack.handle(Request())

        assert response.status_code == 403
        assert trace == ["outer:in", "outer:out"]

    def test_transform_request_and_response(self, terminal):
        """Middleware may rewrite the request before and the response after."""

        def shout(request, handler):
            response = handler.handle(request.with_body(request.body.upper()))
            return response.with_header("x-shouted", "yes")

        response = Stack([CallableMiddleware(shout)], terminal).handle(Request(body="hi"))

        assert response.body == "HI"
        assert response.get_header("x-shouted") == "yes"

    def test_stacks_do_not_share_cursor(self, recorder, terminal, trace):
        """Two stacks over the same middleware advance independently."""
        middleware = [recorder("a"), recorder("b")]
        first = Stack(middleware, terminal)
        second = Stack(middleware, terminal)

        first.handle(Request())
        assert first.remaining == 0
        assert second.remaining == 2

        trace.clear()
        second.handle(Request())

        assert trace == ["a:in", "b:in", "handler", "b:out", "a:out"]

    def test_repeated_next_resumes_at_cursor(self, recorder, terminal, trace):
        """Delegating twice skips middleware already passed downstream."""

        def twice(request, handler):
            handler.handle(request)
            return handler.handle(request)

        stack = Stack([CallableMiddleware(twice), recorder("inner")], terminal)
        stack.handle(Request())

        assert trace == ["inner:in", "handler", "inner:out", "handler"]

    def test_invalid_middleware_fails_fast(self, terminal, trace):
        """Non-middleware entries are a consistency error raised before running."""
        with pytest.raises(InternalConsistencyError, match="process"):
            Stack([object()], terminal)

        assert trace == []

    def test_invalid_handler_fails_fast(self, recorder):
        """The terminal handler must implement handle()."""
        with pytest.raises(InternalConsistencyError, match="handle"):
            Stack([recorder("a")], object())

    def test_create(self, terminal):
        """create() builds an equivalent stack."""
        stack = Stack.create([], terminal)

        assert isinstance(stack, Stack)
        assert len(stack) == 0

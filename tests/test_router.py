"""Tests for Router route resolution and execution."""

import pytest

from micro_dispatch import (
    CallableHandler,
    Endpoint,
    HttpMethod,
    MethodNotAllowedError,
    MiddlewareEntry,
    NotFoundError,
    Registry,
    Request,
    Response,
    Router,
    ServerConfig,
    Stack,
)


def _attributes_handler():
    return CallableHandler(lambda request: Response(body=repr(sorted(request.attributes.items()))))


@pytest.fixture
def router(registry):
    """Router over the registry fixture."""
    return Router(registry)


class TestResolve:
    """Test route matching."""

    def test_full_match_required(self, registry, router, hello_endpoint):
        """Patterns must match the whole path."""
        registry.add_endpoint(hello_endpoint)

        with pytest.raises(NotFoundError):
            router.resolve(Request(path="/test/extra"))
        with pytest.raises(NotFoundError):
            router.resolve(Request(path="/prefix/test"))

    def test_first_registered_route_wins(self, registry, router, greeting_handler):
        """Overlapping patterns resolve to the route registered first."""
        registry.add_endpoint(Endpoint(id="r1", route="/(?P<name>x)", handler=greeting_handler))
        registry.add_endpoint(Endpoint(id="r2", route="/[a-z]", handler=greeting_handler))

        endpoint, _ = router.resolve(Request(path="/x"))

        assert endpoint.id == "r1"

    def test_method_not_allowed(self, registry, router, hello_endpoint, echo_endpoint):
        """A matching route without the method raises 405 with allowed methods."""
        registry.add_endpoint(hello_endpoint)
        registry.add_endpoint(echo_endpoint)

        with pytest.raises(MethodNotAllowedError) as exc_info:
            router.resolve(Request(method="DELETE", path="/test"))

        assert exc_info.value.status_code == 405
        assert set(exc_info.value.allowed) == {HttpMethod.GET, HttpMethod.POST}

    def test_method_not_allowed_stops_at_first_match(self, registry, router, greeting_handler):
        """A later route serving the method is not consulted."""
        registry.add_endpoint(Endpoint(id="get", route="/items", handler=greeting_handler))
        registry.add_endpoint(
            Endpoint(id="post", route="/ite.*", method="POST", handler=greeting_handler)
        )

        with pytest.raises(MethodNotAllowedError):
            router.resolve(Request(method="POST", path="/items"))

    def test_not_found(self, router):
        """No routes at all means 404."""
        with pytest.raises(NotFoundError) as exc_info:
            router.resolve(Request(path="/missing"))

        assert exc_info.value.path == "/missing"

    def test_attributes(self, registry, router, greeting_handler):
        """Named groups and reserved attributes are extracted."""
        registry.add_endpoint(
            Endpoint(
                id="item",
                route=r"/items/(?P<item>\d+)(?:/(?P<part>[a-z]+))?",
                handler=greeting_handler,
            )
        )

        _, attributes = router.resolve(Request(path="/items/42"))

        assert attributes == {
            "item": "42",
            "_id": "item",
            "_route": r"/items/(?P<item>\d+)(?:/(?P<part>[a-z]+))?",
        }

    def test_custom_attribute_names(self, greeting_handler):
        """Reserved attribute names come from the configuration."""
        registry = Registry(ServerConfig(id_attribute="endpoint", route_attribute="pattern"))
        registry.add_endpoint(Endpoint(id="hello", route="/", handler=greeting_handler))

        _, attributes = Router(registry).resolve(Request(path="/"))

        assert attributes == {"endpoint": "hello", "pattern": "/"}

    def test_method_is_case_insensitive(self, registry, router, echo_endpoint):
        """Request methods are compared upper-cased."""
        registry.add_endpoint(echo_endpoint)

        endpoint, _ = router.resolve(Request.model_construct(method="post", path="/test"))

        assert endpoint == echo_endpoint


class TestHandle:
    """Test endpoint execution through the router."""

    def test_attributes_attached_without_mutation(self, registry, router):
        """The handler sees attributes; the caller's request is unchanged."""
        registry.add_endpoint(
            Endpoint(id="user", route="/users/(?P<user>[^/]+)", handler=_attributes_handler())
        )
        request = Request(path="/users/ada")

        response = router.handle(request)

        assert "('user', 'ada')" in response.body
        assert "('_id', 'user')" in response.body
        assert request.attributes == {}

    def test_handler_dispatches_by_endpoint_id(self, registry, router, hello_endpoint, echo_endpoint):
        """A shared handler can tell endpoints apart by the id attribute."""
        registry.add_endpoint(hello_endpoint)
        registry.add_endpoint(echo_endpoint)

        assert router.handle(Request(path="/test")).body == "Hello World"
        assert router.handle(Request(method="POST", path="/test", body="Greetings")).body == "Greetings"

    def test_build_stack_uses_middleware_order(self, registry, router, recorder, trace, hello_endpoint):
        """Middleware runs in priority order around the endpoint."""
        registry.add_endpoint(hello_endpoint)
        registry.add_middleware(MiddlewareEntry(id="late", priority=80, instance=recorder("late")))
        registry.add_middleware(MiddlewareEntry(id="early", priority=10, instance=recorder("early")))

        stack = router.build_stack(hello_endpoint)
        router.handle(Request(path="/test"))

        assert isinstance(stack, Stack)
        assert len(stack) == 2
        assert trace == ["early:in", "late:in", "late:out", "early:out"]

    def test_fresh_stack_per_request(self, registry, router, recorder, trace, hello_endpoint):
        """Each request runs the full chain."""
        registry.add_endpoint(hello_endpoint)
        registry.add_middleware(MiddlewareEntry(id="only", instance=recorder("only")))

        router.handle(Request(path="/test"))
        router.handle(Request(path="/test"))

        assert trace == ["only:in", "only:out", "only:in", "only:out"]

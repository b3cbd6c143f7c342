"""Simple example demonstrating the micro-dispatch core."""

import logging
from http import HTTPStatus

from micro_dispatch import (
    SERVER_REQUEST,
    SERVER_RESPONSE,
    DispatchError,
    Event,
    Request,
    Response,
    Server,
)

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def build_server() -> Server:
    """Register endpoints, middleware and listeners on a new server."""
    server = Server()

    # Reject requests without an authorization header
    @server.middleware(priority=20)
    def require_auth(request: Request, handler) -> Response:
        if not request.has_header("authorization"):
            return Response(status_code=HTTPStatus.FORBIDDEN.value)
        return handler.handle(request)

    # Named groups become request attributes
    @server.route(r"/greet/(?P<name>\w+)")
    def greet(request: Request) -> Response:
        return Response(body=f"Hello {request.get_attribute('name')}")

    @server.route("/echo", method="POST")
    def echo(request: Request) -> Response:
        return Response(body=request.body)

    # Trust local callers by adding the header before routing
    @server.on(SERVER_REQUEST, priority=10)
    def trust_local(event: Event) -> None:
        request = event.data.request
        if request.get_header("x-forwarded-for") in (None, "127.0.0.1"):
            event.data.request = request.with_header("authorization", "local")

    @server.on(SERVER_RESPONSE, priority=90)
    def audit(event: Event) -> None:
        request, response = event.data.request, event.data.response
        logger.info("%s %s -> %d", request.method, request.path, response.status_code)

    return server


def main() -> None:
    """Send a few requests through the server."""
    server = build_server()
    requests = [
        Request(path="/greet/world"),
        Request(method="POST", path="/echo", body="ping"),
        Request(path="/greet/world", headers={"x-forwarded-for": "203.0.113.9"}),
        Request(path="/missing"),
    ]
    for request in requests:
        try:
            response = server.handle(request)
        except DispatchError as exc:
            logger.info("%s %s -> %s", request.method, request.path, exc)
            continue
        logger.info("body=%r", response.body)


if __name__ == "__main__":
    main()

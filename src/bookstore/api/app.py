"""Bookstore FastAPI application.

Processes commands synchronously via HTTP; every request runs inside the
bookstore domain context.

Usage:
    uvicorn bookstore.api.app:create_app --factory --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request
from protean.integrations.fastapi import register_exception_handlers

from bookstore.api.errors import register_error_handlers
from bookstore.api.routes import inventory_router, order_router
from bookstore.domain import bookstore
from bookstore.publishing import EventPublisher, StructlogEventPublisher, use_publisher
from bookstore.utils.logging import add_context, clear_context, configure_logging


def create_app(publisher: EventPublisher | None = None) -> FastAPI:
    """Initialize the domain and build the HTTP application around it.

    ``PROTEAN_ENV`` selects the configuration overlay from ``domain.toml``.
    Committed events go to ``publisher``, or to the application log when none
    is given.
    """
    bookstore.init()
    use_publisher(publisher or StructlogEventPublisher())
    configure_logging(json_output=bookstore.config.get("custom", {}).get("log_format") == "json")

    app = FastAPI(
        title="Bookstore API",
        description="Orders and inventory for an online bookstore",
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the bookstore domain context for each request."""
        add_context(method=request.method, path=request.url.path)
        try:
            with bookstore.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response

    app.include_router(order_router)
    app.include_router(inventory_router)

    register_exception_handlers(app)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "domain": bookstore.name}

    return app

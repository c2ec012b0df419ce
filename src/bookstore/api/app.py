"""Bookstore FastAPI application.

Every request runs inside the bookstore domain context, so routers can use
``current_domain`` directly. Commands are processed synchronously.

Usage:
    uvicorn bookstore.api.app:create_app --factory --host 0.0.0.0 --port 8000
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from bookstore.domain import bookstore, init_domain
from bookstore.utils.logging import add_context, clear_context, configure_logging
from bookstore.utils.settings import environment, frontend_url
from bookstore.utils.storage import UploadKind, ensure_upload_dirs

logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    init_domain()

    app = FastAPI(
        title="Bookstore API",
        description="E-book marketplace — accounts, catalogue, ordering and payments",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_url()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the bookstore domain context for each request."""
        add_context(method=request.method, path=request.url.path)
        try:
            with bookstore.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    from bookstore.accounts.api import admin_router, publisher_router, user_router
    from bookstore.api.errors import register_error_handlers
    from bookstore.catalogue.api import book_router
    from bookstore.ordering.api import cart_router, order_router
    from bookstore.payments.api import payment_router

    for router in (user_router, publisher_router, admin_router, book_router, cart_router, order_router, payment_router):
        app.include_router(router)
    register_error_handlers(app)

    # Only public images are served statically; book files and payment proofs
    # go through the authenticated download and proof endpoints
    root = ensure_upload_dirs()
    for kind in (UploadKind.COVER, UploadKind.AVATAR):
        folder = kind.value.folder
        app.mount(f"/uploads/{folder}", StaticFiles(directory=root / folder), name=f"uploads-{folder}")

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------
    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": bookstore.name, "environment": environment()})

    logger.info("Bookstore API ready", environment=environment())
    return app

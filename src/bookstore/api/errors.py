"""Exception-to-response mapping shared by the application and API tests.

Protean's own handlers cover ValidationError (400), ObjectNotFoundError
(404) and friends; the two below add the bookstore's failure types.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from bookstore.accounts.account.tokens import AuthenticationError
from bookstore.payments.gateway import GatewayError

logger = structlog.get_logger(__name__)


async def _authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": str(exc)})


async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    logger.error("Payment gateway error", path=request.url.path, detail=exc.detail, status=exc.status_code)
    return JSONResponse(status_code=502, content={"error": exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(AuthenticationError, _authentication_error)
    app.add_exception_handler(GatewayError, _gateway_error)

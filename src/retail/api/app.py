"""FastAPI application factory for the Retail domain.

The domain must be initialized (``retail.init()``) before the app serves
requests; every request runs inside its own domain context.
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from retail.api.routes import admin_order_router, cart_router, order_router, reference_router
from retail.domain import logger, retail
from retail.errors import RetailError
from retail.utils.logging import request_log_context


def create_app() -> FastAPI:
    app = FastAPI(
        title="Retail Checkout API",
        description="Carts, checkout and order tracking for the retail storefront",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the retail domain context and tag log lines with a request id."""
        request_id = request.headers.get("x-request-id") or uuid4().hex
        with request_log_context(request_id=request_id, path=request.url.path), retail.domain_context():
            response = await call_next(request)
        return response

    register_exception_handlers(app)

    @app.exception_handler(RetailError)
    async def retail_error_handler(request: Request, exc: RetailError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log("Request failed", reason=exc.reason, status_code=exc.status_code, path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(admin_order_router)
    app.include_router(reference_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": retail.name})

    return app

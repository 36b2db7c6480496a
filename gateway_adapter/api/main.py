from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gateway_adapter.api.middlewares import CorrelationIdMiddleware
from gateway_adapter.api.routers import health, metrics, payments
from gateway_adapter.application.gateway import BraintreeGateway
from gateway_adapter.infrastructure.processor.factory import create_gateway
from gateway_adapter.shared.config import Settings, load_settings
from gateway_adapter.shared.correlation import get_correlation_id
from gateway_adapter.shared.errors import GatewayError, InvalidArgumentsError
from gateway_adapter.shared.logging import configure_logging, get_logger
from gateway_adapter.shared.problem import ProblemDetails

log = get_logger(__name__)


def _problem(status: int, title: str, detail: str, request: Request) -> JSONResponse:
    pd = ProblemDetails(
        title=title,
        status=status,
        detail=detail,
        instance=request.url.path,
        correlation_id=get_correlation_id(),
    )
    return JSONResponse(status_code=status, content=pd.to_dict())


def create_app(settings: Settings | None = None, gateway: BraintreeGateway | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.gateway = gateway or create_gateway(settings)

    app.add_middleware(CorrelationIdMiddleware)

    cors_origins = settings.cors_origins
    if not cors_origins and settings.app_env == "local":
        cors_origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(payments.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    @app.exception_handler(GatewayError)
    def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        log.warning("gateway error", extra={"reason": exc.message})
        return _problem(502, "Bad Gateway", exc.message, request)

    @app.exception_handler(InvalidArgumentsError)
    def _invalid_arguments(request: Request, exc: InvalidArgumentsError) -> JSONResponse:
        return _problem(422, "Unprocessable Entity", str(exc), request)

    @app.on_event("startup")
    def _startup() -> None:
        from gateway_adapter.infrastructure.db.session import init_db

        init_db(settings)
        log.info("startup complete")

    return app


app = create_app()

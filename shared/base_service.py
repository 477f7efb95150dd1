"""
Base service class for backend API services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError, StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import time

from prometheus_client import CONTENT_TYPE_LATEST

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import AccessLayerException, NotFoundError, ValidationError


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
}

GENERIC_ERROR_MESSAGE = "Something went wrong!"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port

        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.http")
        self.metrics = get_metrics_collector(service_name)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()
        self._setup_error_handlers()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.start()
            try:
                yield
            finally:
                await self.stop()

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=[self.config.frontend_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            start_time = time.time()
            clear_context()
            request_id = set_request_id(request.headers.get("X-Request-ID"))

            try:
                response = await call_next(request)
            except Exception as exc:
                # Rendered here so error responses carry the same headers
                response = self._internal_error_response(request, exc)

            for header, value in SECURITY_HEADERS.items():
                response.headers.setdefault(header, value)
            response.headers["X-Request-ID"] = request_id

            self._record_request(request, response.status_code, time.time() - start_time)
            return response

    def _record_request(self, request: Request, status_code: int, duration: float):
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")

        self.metrics.record_http_request(
            method=request.method,
            endpoint=endpoint,
            status_code=status_code,
            duration=duration
        )

        self.logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round(duration * 1000, 2)
        )

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                self.metrics.record_health_check("ok")

                return {
                    "status": "OK",
                    "timestamp": utc_timestamp(),
                    "service": self.service_name,
                    **dependencies
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "status": "ERROR",
                        "timestamp": utc_timestamp(),
                        "service": self.service_name,
                        "error": "Health check failed"
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=self.metrics.export(),
                media_type=CONTENT_TYPE_LATEST
            )

    def _setup_error_handlers(self):
        """Render every failure as ``{"error": message}``."""

        @self.app.exception_handler(AccessLayerException)
        async def access_layer_exception_handler(request: Request, exc: AccessLayerException):
            log = self.logger.warning if exc.status_code < 500 else self.logger.error
            log(
                "Request rejected",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            # Unknown paths and unsupported methods are both "not found"
            if exc.status_code in (404, 405):
                error = NotFoundError()
                return JSONResponse(status_code=error.status_code, content=error.to_response().model_dump())

            return JSONResponse(
                status_code=exc.status_code,
                content={"error": str(exc.detail)},
                headers=getattr(exc, "headers", None)
            )

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            self.logger.warning("Invalid request", path=request.url.path, errors=exc.errors())
            error = ValidationError("Invalid request body")
            return JSONResponse(status_code=error.status_code, content=error.to_response().model_dump())

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            return self._internal_error_response(request, exc)

    def _internal_error_response(self, request: Request, exc: Exception) -> JSONResponse:
        """Log an unhandled exception and hide it behind the generic 500."""
        self.logger.error(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
            exc_info=exc
        )
        self.metrics.record_error("INTERNAL_ERROR")
        return JSONResponse(
            status_code=500,
            content={"error": GENERIC_ERROR_MESSAGE}
        )

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )

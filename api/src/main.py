"""Electrofun API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import redis.asyncio as redis
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.auth.oauth import GoogleOAuthClient
from src.auth.router import router as auth_router
from src.auth.service import ProfileService
from src.config import get_settings
from src.core.context import get_request_id
from src.core.database import AsyncCassandraConnection, init_async_cassandra
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.core.redis import RateLimiter, close_redis_client, create_redis_client
from src.courses.community import CommunityService
from src.courses.creator import CreatorService
from src.courses.router import (
    router_admin_courses,
    router_community,
    router_courses,
    router_creator,
)
from src.courses.service import CourseService
from src.email.router import admin_router as email_admin_router
from src.email.service import EmailService
from src.email.transport import EmailTransport, GmailTransport, LoggingTransport
from src.entitlements.service import EntitlementService
from src.health import router as health_router
from src.kits.router import router_admin_kits, router_shop
from src.kits.service import KitService
from src.lesson_files.compiler import SvelteCompiler
from src.lesson_files.router import preview_router as lesson_preview_router
from src.lesson_files.router import router as lesson_files_router
from src.lesson_files.service import LessonFileService
from src.lessons.service import LessonService
from src.orders.router import router as checkout_router
from src.orders.service import OrderService
from src.payments.router import router as payments_router
from src.payments.service import PaymentService
from src.progress.router import router as profile_router
from src.progress.service import ProgressService
from src.redemption.router import router as redeem_router
from src.redemption.service import RedemptionService
from src.storage.service import FirebaseStorageService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra: AsyncCassandraConnection | None = None
    cassandra_session: Any = None
    redis_client: redis.Redis | None = None
    redeem_rate_limiter: RateLimiter | None = None
    oauth_client: GoogleOAuthClient | None = None
    payment_service: PaymentService | None = None
    storage_service: FirebaseStorageService | None = None
    email_transport: EmailTransport | None = None
    profile_service: ProfileService | None = None
    kit_service: KitService | None = None
    entitlement_service: EntitlementService | None = None
    email_service: EmailService | None = None
    redemption_service: RedemptionService | None = None
    course_service: CourseService | None = None
    lesson_service: LessonService | None = None
    lesson_file_service: LessonFileService | None = None
    progress_service: ProgressService | None = None
    order_service: OrderService | None = None
    community_service: CommunityService | None = None
    creator_service: CreatorService | None = None


app_state = AppState()


def _not_initialized(name: str) -> RuntimeError:
    return RuntimeError(f"{name} not initialized")


def get_profile_service() -> ProfileService:
    """Get ProfileService instance from app state."""
    if app_state.profile_service is None:
        raise _not_initialized("ProfileService")
    return app_state.profile_service


def get_oauth_client() -> GoogleOAuthClient:
    """Get GoogleOAuthClient instance from app state."""
    if app_state.oauth_client is None:
        raise _not_initialized("GoogleOAuthClient")
    return app_state.oauth_client


def get_kit_service() -> KitService:
    """Get KitService instance from app state."""
    if app_state.kit_service is None:
        raise _not_initialized("KitService")
    return app_state.kit_service


def get_entitlement_service() -> EntitlementService:
    """Get EntitlementService instance from app state."""
    if app_state.entitlement_service is None:
        raise _not_initialized("EntitlementService")
    return app_state.entitlement_service


def get_email_service() -> EmailService:
    """Get EmailService instance from app state."""
    if app_state.email_service is None:
        raise _not_initialized("EmailService")
    return app_state.email_service


def get_redemption_service() -> RedemptionService:
    """Get RedemptionService instance from app state."""
    if app_state.redemption_service is None:
        raise _not_initialized("RedemptionService")
    return app_state.redemption_service


def get_redeem_rate_limiter() -> RateLimiter:
    """Get the redemption RateLimiter from app state."""
    if app_state.redeem_rate_limiter is None:
        raise _not_initialized("RateLimiter")
    return app_state.redeem_rate_limiter


def get_course_service() -> CourseService:
    """Get CourseService instance from app state."""
    if app_state.course_service is None:
        raise _not_initialized("CourseService")
    return app_state.course_service


def get_community_service() -> CommunityService:
    """Get CommunityService instance from app state."""
    if app_state.community_service is None:
        raise _not_initialized("CommunityService")
    return app_state.community_service


def get_creator_service() -> CreatorService:
    """Get CreatorService instance from app state."""
    if app_state.creator_service is None:
        raise _not_initialized("CreatorService")
    return app_state.creator_service


def get_lesson_service() -> LessonService:
    """Get LessonService instance from app state."""
    if app_state.lesson_service is None:
        raise _not_initialized("LessonService")
    return app_state.lesson_service


def get_lesson_file_service() -> LessonFileService:
    """Get LessonFileService instance from app state."""
    if app_state.lesson_file_service is None:
        raise _not_initialized("LessonFileService")
    return app_state.lesson_file_service


def get_progress_service() -> ProgressService:
    """Get ProgressService instance from app state."""
    if app_state.progress_service is None:
        raise _not_initialized("ProgressService")
    return app_state.progress_service


def get_order_service() -> OrderService:
    """Get OrderService instance from app state."""
    if app_state.order_service is None:
        raise _not_initialized("OrderService")
    return app_state.order_service


def get_payment_service() -> PaymentService:
    """Get PaymentService instance from app state."""
    if app_state.payment_service is None:
        raise _not_initialized("PaymentService")
    return app_state.payment_service


def get_component_status() -> dict[str, bool]:
    """Which backing services are available, for the readiness check."""
    return {
        "database": app_state.cassandra is not None and app_state.cassandra.is_connected(),
        "redis": app_state.redis_client is not None,
        "storage": settings.firebase_configured,
        "email": settings.email_configured,
    }


def _build_email_transport() -> EmailTransport:
    if settings.email_configured:
        return GmailTransport(
            credentials_path=settings.email_credentials_path,
            sender_address=settings.email_sender_address,
            sender_name=settings.email_sender_name,
        )
    return LoggingTransport()


def _init_services(session: Any) -> None:
    """Construct the database-backed services with explicit collaborators."""
    keyspace = settings.cassandra_keyspace

    app_state.profile_service = ProfileService(session=session, keyspace=keyspace)
    app_state.kit_service = KitService(session=session, keyspace=keyspace)
    app_state.entitlement_service = EntitlementService(session=session, keyspace=keyspace)
    app_state.email_service = EmailService(
        session=session,
        keyspace=keyspace,
        transport=app_state.email_transport or LoggingTransport(),
        courses_url=settings.courses_url,
    )
    app_state.redemption_service = RedemptionService(
        kit_service=app_state.kit_service,
        entitlement_service=app_state.entitlement_service,
        email_service=app_state.email_service,
        profile_service=app_state.profile_service,
    )
    logger.info("kit_services_initialized")

    app_state.course_service = CourseService(session=session, keyspace=keyspace)
    app_state.lesson_service = LessonService(session=session, keyspace=keyspace)
    app_state.progress_service = ProgressService(session=session, keyspace=keyspace)
    app_state.order_service = OrderService(session=session, keyspace=keyspace)
    app_state.lesson_file_service = LessonFileService(
        session=session,
        keyspace=keyspace,
        storage=app_state.storage_service or FirebaseStorageService(settings),
        compiler=SvelteCompiler(
            settings.svelte_compiler_command,
            timeout=settings.svelte_compiler_timeout,
        ),
        lesson_service=app_state.lesson_service,
        course_service=app_state.course_service,
    )
    app_state.community_service = CommunityService(
        course_service=app_state.course_service,
        lesson_service=app_state.lesson_service,
        entitlement_service=app_state.entitlement_service,
        progress_service=app_state.progress_service,
        kit_service=app_state.kit_service,
    )
    app_state.creator_service = CreatorService(
        course_service=app_state.course_service,
        lesson_service=app_state.lesson_service,
        lesson_file_service=app_state.lesson_file_service,
        entitlement_service=app_state.entitlement_service,
        profile_service=app_state.profile_service,
    )
    logger.info("course_services_initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional: rate limits fail open without it
    try:
        app_state.redis_client = await create_redis_client(settings)
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - redemption rate limit disabled",
        )
    app_state.redeem_rate_limiter = RateLimiter(
        app_state.redis_client,
        prefix="redeem",
        limit=settings.redeem_rate_limit_per_minute,
    )

    # Services without a database dependency
    app_state.oauth_client = GoogleOAuthClient(settings)
    app_state.payment_service = PaymentService(
        tax_rate=settings.payment_tax_rate,
        currency=settings.payment_currency,
    )
    app_state.storage_service = FirebaseStorageService(settings)
    app_state.email_transport = _build_email_transport()
    logger.info(
        "email_transport_initialized",
        transport=app_state.email_transport.name,
        sender=settings.email_sender_address,
    )

    try:
        app_state.cassandra = AsyncCassandraConnection(settings)
        app_state.cassandra_session = await init_async_cassandra(app_state.cassandra)
        logger.info("cassandra_initialized")
        _init_services(app_state.cassandra_session)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await close_redis_client(app_state.redis_client)
    app_state.redis_client = None
    if app_state.cassandra is not None:
        app_state.cassandra.disconnect()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # SECURITY: Always set debug=False to prevent Starlette's ServerErrorMiddleware
    # from exposing stack traces in responses. Our custom exception handlers will
    # log full details internally while returning safe error messages to users.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Electrofun kit store and courses API",
        debug=False,  # Never expose stack traces in responses
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    # Global exception handlers (security: never expose stack traces)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        # Routers only raise HTTPException with curated messages, 5xx included
        content: dict[str, Any] = {
            "error": True,
            "message": str(exc.detail),
            "status_code": exc.status_code,
            "request_id": request_id,
        }
        # Structured details (e.g. kit_required) are passed through
        if isinstance(exc.detail, dict):
            content["message"] = exc.detail.get("message", "Error")
            content["details"] = exc.detail

        return ORJSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        SECURITY: Never expose stack traces or internal error details to users.
        All details are logged internally for debugging.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(redeem_router)
    app.include_router(router_shop)
    app.include_router(router_admin_kits)
    app.include_router(router_courses)
    app.include_router(router_community)
    app.include_router(router_creator)
    app.include_router(router_admin_courses)
    app.include_router(lesson_files_router)
    app.include_router(lesson_preview_router)
    app.include_router(checkout_router)
    app.include_router(payments_router)
    app.include_router(profile_router)
    app.include_router(email_admin_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Electrofun API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


# Configure router dependencies before creating app
from src.auth.dependencies import (  # noqa: E402
    set_oauth_client_getter,
    set_profile_service_getter,
)
from src.courses.dependencies import (  # noqa: E402
    set_community_service_getter,
    set_course_service_getter,
    set_creator_service_getter,
)
from src.email.dependencies import set_email_service_getter  # noqa: E402
from src.entitlements.dependencies import set_entitlement_service_getter  # noqa: E402
from src.health import set_component_status_getter  # noqa: E402
from src.kits.dependencies import set_kit_service_getter  # noqa: E402
from src.lesson_files.dependencies import set_lesson_file_service_getter  # noqa: E402
from src.lessons.dependencies import set_lesson_service_getter  # noqa: E402
from src.orders.dependencies import set_order_service_getter  # noqa: E402
from src.payments.dependencies import set_payment_service_getter  # noqa: E402
from src.progress.dependencies import set_progress_service_getter  # noqa: E402
from src.redemption.dependencies import (  # noqa: E402
    set_redeem_rate_limiter_getter,
    set_redemption_service_getter,
)


set_profile_service_getter(get_profile_service)
set_oauth_client_getter(get_oauth_client)
set_kit_service_getter(get_kit_service)
set_entitlement_service_getter(get_entitlement_service)
set_email_service_getter(get_email_service)
set_redemption_service_getter(get_redemption_service)
set_redeem_rate_limiter_getter(get_redeem_rate_limiter)
set_course_service_getter(get_course_service)
set_community_service_getter(get_community_service)
set_creator_service_getter(get_creator_service)
set_lesson_service_getter(get_lesson_service)
set_lesson_file_service_getter(get_lesson_file_service)
set_progress_service_getter(get_progress_service)
set_order_service_getter(get_order_service)
set_payment_service_getter(get_payment_service)
set_component_status_getter(get_component_status)


app = create_app()

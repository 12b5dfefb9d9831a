from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fleet_access.access.cache import MemoryTTLCache, RedisTTLCache, TTLCache
from fleet_access.configs.settings import Settings, get_settings
from fleet_access.errors import AppError
from fleet_access.repositories.mongo import get_mongo_client, get_mongo_db
from fleet_access.repositories.redis_client import redis_client
from fleet_access.repositories.permission_repository import PermissionRepository
from fleet_access.repositories.profile_repository import ProfileRepository
from fleet_access.repositories.role_override_repository import RoleOverrideRepository
from fleet_access.routers.access_router import router as access_router
from fleet_access.routers.health_router import router as health_router
from fleet_access.services.access_service import AccessService
from fleet_access.utils.response import failure
from fastapi.middleware.cors import CORSMiddleware
from fleet_access.configs.logging_config import get_logger, setup_logging
import time

log = get_logger(__name__)


def build_caches(settings: Settings) -> tuple[TTLCache, TTLCache]:
    if settings.CACHE_BACKEND == "redis":
        prefix = settings.redis_key_prefix
        return (
            RedisTTLCache(
                redis_client.client,
                f"{prefix}:permissions",
                ttl=settings.PERMISSION_CACHE_TTL,
                max_stale=settings.CACHE_MAX_STALE,
            ),
            RedisTTLCache(
                redis_client.client,
                f"{prefix}:role_overrides",
                ttl=settings.ROLE_OVERRIDE_CACHE_TTL,
                max_stale=settings.CACHE_MAX_STALE,
            ),
        )
    return (
        MemoryTTLCache(ttl=settings.PERMISSION_CACHE_TTL, max_stale=settings.CACHE_MAX_STALE),
        MemoryTTLCache(ttl=settings.ROLE_OVERRIDE_CACHE_TTL, max_stale=settings.CACHE_MAX_STALE),
    )


def create_app() -> FastAPI:
    app = FastAPI(title="fleet_access", version="0.1.0")
    settings: Settings = get_settings()
    # Normalize CORS origins from settings (.env can provide a comma-separated string)
    raw_origins = settings.CORS_ORIGINS
    if isinstance(raw_origins, str):
        origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    elif isinstance(raw_origins, (list, tuple, set)):
        origins = list(raw_origins)
    else:
        origins = []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

        log.info("request.start method=%s path=%s request_id=%s", method, path, request_id)
        status_code = "unknown"
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            log.info(
                "request.end method=%s path=%s status=%s request_id=%s elapsed_ms=%s",
                method,
                path,
                status_code,
                request_id,
                elapsed_ms,
            )
        return response

    app.include_router(health_router)
    app.include_router(access_router)

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        log.info("request.error type=app_error status=%s message=%s", exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=failure(exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error: %s", str(exc))
        return JSONResponse(status_code=500, content=failure("internal server error"))

    @app.on_event("startup")
    async def startup() -> None:
        setup_logging()
        settings: Settings = get_settings()

        mongo_client = get_mongo_client(settings)
        mongo_db = get_mongo_db(mongo_client, settings)
        if settings.CACHE_BACKEND == "redis":
            await redis_client.connect()

        app.state.settings = settings
        app.state.mongo_client = mongo_client
        app.state.mongo_db = mongo_db

        permission_repo = PermissionRepository(mongo_db, settings)
        role_override_repo = RoleOverrideRepository(mongo_db, settings)
        profile_repo = ProfileRepository(mongo_db, settings)
        log.info("startup.ensure_indexes begin")
        await permission_repo.ensure_indexes()
        await role_override_repo.ensure_indexes()
        log.info("startup.ensure_indexes done")

        permission_cache, role_override_cache = build_caches(settings)
        app.state.access_service = AccessService(
            permission_repo=permission_repo,
            role_override_repo=role_override_repo,
            profile_repo=profile_repo,
            permission_cache=permission_cache,
            role_override_cache=role_override_cache,
            settings=settings,
        )
        log.info(
            "startup.done cache_backend=%s failure_mode=%s",
            settings.CACHE_BACKEND,
            settings.PERMISSION_LOOKUP_FAILURE_MODE,
        )

    @app.on_event("shutdown")
    async def shutdown() -> None:
        log.info("shutdown.begin")
        await redis_client.close()
        mongo_client = getattr(app.state, "mongo_client", None)
        if mongo_client is not None:
            mongo_client.close()
        log.info("shutdown.done")

    return app


app = create_app()

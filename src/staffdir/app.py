"""FastAPI application factory for the staff directory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from staffdir.common.exceptions import StaffDirError
from staffdir.common.schemas import HealthResponse
from staffdir.common.security import to_http_exception


def create_app() -> FastAPI:
    from staffdir.deps import get_context

    # Fails fast when no signing secret is configured.
    ctx = get_context()
    settings = ctx.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await ctx.db.init()
        await ctx.db.create_all()
        yield
        # Shutdown
        await ctx.db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Errors raised outside a router's own handling, such as a failed commit.
    @app.exception_handler(StaffDirError)
    async def staffdir_error_handler(request: Request, exc: StaffDirError):
        http_exc = to_http_exception(exc)
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail},
            headers=http_exc.headers,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from staffdir.auth.router import router as auth_router
    from staffdir.approvals.router import router as approvals_router
    from staffdir.audit.router import router as audit_router

    app.include_router(auth_router, tags=["auth"])
    app.include_router(approvals_router, tags=["approvals"])
    app.include_router(audit_router, tags=["audit"])

    return app

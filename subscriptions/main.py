import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from subscriptions.cache import cache
from subscriptions.config import settings
from subscriptions.errors import ServiceError
from subscriptions.middleware import TimingMiddleware
from subscriptions.routers import plans, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the plan cache degrades to a no-op when Redis is unreachable.
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Subscriptions API",
    description="CRUD for users and subscription plans",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# Routers
app.include_router(users.router)
app.include_router(plans.router)


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": VERSION,
        "cache": {"enabled": cache.enabled, **cache.stats},
    }

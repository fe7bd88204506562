from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from missionflow import __version__
from missionflow.api.errors import register_exception_handlers
from missionflow.api.routers import approvals, health, missions
from missionflow.common.logger import configure_logging
from missionflow.core.config import get_settings
from missionflow.db.session import init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = configure_logging(settings)
    init_db()
    logger.info(f"{settings.app_name} {__version__} started")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Mission approval workflow: Department Head, Finance, HR, Director",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(missions.router, prefix="/api")
app.include_router(approvals.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }

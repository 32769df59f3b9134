import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from plaque_registry.config import settings
from plaque_registry.database import create_tables, async_session
from plaque_registry.seed import seed_data
from plaque_registry.routers.auth import router as auth_router
from plaque_registry.routers.plaques import router as plaques_router
from plaque_registry.utils.exceptions import register_exception_handlers

SERVICE_NAME = "plaque-registry-api"
VERSION = "0.1.0"

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    async with async_session() as session:
        await seed_data(session)
    logger.info("%s %s started", SERVICE_NAME, VERSION)
    yield


app = FastAPI(
    title="Plaque Registry API",
    description="Enregistrement des plaques d'immatriculation du Ministère des Transports",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %d", request.method, request.url.path, response.status_code)
    return response


app.include_router(auth_router, prefix="/api/v1")
app.include_router(plaques_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "success", "data": {"service": SERVICE_NAME, "version": VERSION}, "message": None}

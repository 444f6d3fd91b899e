import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.v1.auth import router as auth_router
from app.api.v1.oficinas import router as oficinas_router
from app.api.v1.usuarios import router as usuarios_router
from app.checklist.router import router as checklist_router
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.db import models
from app.db.init_db import seed_initial_data
from app.db.session import engine
from app.services.storage import LOCAL_URL_PREFIX, StorageClient

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("vistoria")

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Vistoria - Checklist de Veiculos por Ordem de Servico",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
def on_startup() -> None:
    models.Base.metadata.create_all(bind=engine)
    seed_initial_data()
    app.state.storage = StorageClient.from_settings(settings)
    if settings.ENV.lower() == "production":
        if settings.SECRET_KEY == "dev-secret-change-me":
            logger.warning("SECRET_KEY esta usando valor padrao em producao.")
        if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            logger.warning("SQLALCHEMY_DATABASE_URI aponta para SQLite em producao.")
        if not settings.GCS_BUCKET_PHOTOS:
            logger.warning("GCS_BUCKET_PHOTOS ausente: fotos ficam no disco local.")


app.include_router(auth_router, prefix="/api")
app.include_router(oficinas_router, prefix="/api")
app.include_router(usuarios_router, prefix="/api")
app.include_router(checklist_router, prefix="/api")

if not settings.GCS_BUCKET_PHOTOS:
    app.mount(
        LOCAL_URL_PREFIX,
        StaticFiles(directory=settings.LOCAL_STORAGE_DIR, check_dir=False),
        name="uploads",
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.get("/api/health")
def health():
    return {"status": "ok"}

"""
Point d'entrée principal de l'API DojoTrack.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from app.config import settings
from app.database import init_db
from app.exceptions import StoreReadError, StoreWriteError
from app.routers import logs, session, settings as settings_router, students
from app.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application : démarre et arrête le scheduler des rappels."""
    if settings.AUTO_CREATE_TABLES:
        init_db()
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="DojoTrack API",
    description="API de prise de présence pour un dojo d'arts martiaux (file du jour, séries, historique)",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS — autorise tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(students.router)
app.include_router(session.router)
app.include_router(logs.router)
app.include_router(settings_router.router)


@app.exception_handler(StoreReadError)
async def store_read_exception_handler(request: Request, exc: StoreReadError) -> JSONResponse:
    """Store illisible (réseau, permissions) : 503, le client garde son état vide."""
    logger.error("Lecture impossible sur %s : %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Données momentanément indisponibles."})


@app.exception_handler(StoreWriteError)
async def store_write_exception_handler(request: Request, exc: StoreWriteError) -> JSONResponse:
    """Écriture refusée par le store : message affichable tel quel (toast)."""
    logger.error("Écriture impossible sur %s : %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Échec de l'enregistrement : {exc}"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "DojoTrack API", "version": "0.1.0"}

# main.py

import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import engine, Base

# Importa os models para registrá-los no Base.metadata
from app.models.import_simulation import ImportSimulation  # noqa: F401

from app.api.exchange import router as exchange_router
from app.api.simulations import router as simulations_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Landed Cost Simulator API",
    version="0.1.0",
)

# === CORS: liberar acesso do front ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


app.include_router(simulations_router)
app.include_router(exchange_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}

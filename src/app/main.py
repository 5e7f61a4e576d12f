# src/app/main.py
from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.app.config import get_settings
from src.app.errors import register_error_handlers
from src.app.routers.aimock import router as aimock_router
from src.app.routers.ingredient import router as ingredient_router
from src.app.routers.recipes import router as recipes_router
from src.app.routers.recommend import router as recommend_router
from src.services import enrichment

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("app")

app = FastAPI(title="Recipe Discovery API", version="0.1.0")

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", enrichment.SECRET_HEADER]


# Registered before CORSMiddleware so it sits inside it: real preflights are
# answered there, bare OPTIONS requests fall through to here.
@app.middleware("http")
async def answer_options(request: Request, call_next):
    if request.method != "OPTIONS":
        return await call_next(request)
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": ", ".join(settings.FRONTEND_CORS_ORIGINS),
            "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
            "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)

register_error_handlers(app)

app.include_router(recipes_router)
app.include_router(aimock_router)
app.include_router(ingredient_router)
app.include_router(recommend_router)


@app.on_event("startup")
async def startup() -> None:
    if not get_settings().ENRICHMENT_CALLBACK_SECRET:
        log.warning("ENRICHMENT_CALLBACK_SECRET is not set; /recipe/process accepts unauthenticated callers")


@app.on_event("shutdown")
async def shutdown() -> None:
    await enrichment.get_scheduler().shutdown()


@app.get("/health")
def health():
    return {"ok": True}


import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import settings
from .db import get_conn, pool
from .errors import CheckoutError, checkout_error_handler
from .logging_utils import setup_logging
from .middleware.request_context import RequestContextMiddleware
from .routes import checkout

setup_logging()
logger = logging.getLogger(__name__)

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await pool.open(wait=True)
    except Exception as exc:
        # fallback tables still answer without the database
        logger.warning("Database pool unavailable at startup: %s", exc)
    try:
        yield
    finally:
        await pool.close()


app = FastAPI(title="Credits Checkout", version="0.1.0", lifespan=lifespan)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=settings.cors_allow_headers,
)
app.add_exception_handler(CheckoutError, checkout_error_handler)

app.include_router(checkout.router)


@app.get("/healthz")
async def healthz():
    return {"ok": True, "message": "Backend responding"}


@app.get("/readyz")
async def readyz():
    try:
        async with get_conn() as cur:
            await cur.execute("select 1")
            await cur.fetchone()
    except Exception as exc:
        raise HTTPException(status_code=503, detail="database unavailable") from exc
    return {"ok": True, "database": "ready"}


@app.get("/metrics")
def metrics_endpoint():
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

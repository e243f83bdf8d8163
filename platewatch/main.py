# platewatch/main.py

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import AUTO_SEED, CORS_ORIGINS, OCR_WARMUP, UPLOAD_DIR
from .database import Base, engine
from .dependencies import get_engine_pool, get_store
from .exceptions import APIException
from .monitoring import router as monitoring_router
from .predict import router as predict_router
from .seed import seed_defaults

logger = logging.getLogger(__name__)

# Create SQLAlchemy tables
Base.metadata.create_all(bind=engine)

if AUTO_SEED:
    seed_defaults(get_store())


@asynccontextmanager
async def lifespan(app: FastAPI):
    if OCR_WARMUP:
        pool = get_engine_pool()
        ready = await run_in_threadpool(pool.warm_up)
        logger.info(f"OCR warm-up finished: {ready}/{pool.size} engines ready")
    yield


app = FastAPI(
    title="Platewatch API",
    description="License plate recognition with watch-list alerts",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

app.include_router(predict_router)
app.include_router(monitoring_router)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.get("/")
async def root():
    return {
        "message": "Platewatch API is running",
        "status": "healthy",
        "version": __version__
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "platewatch-api",
        "version": __version__
    }

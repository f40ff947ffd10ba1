from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
import os
import time

from config import load_settings
from db.database import init_db
from routers import interpret, ocr, receipts, summarize, trends
from services.errors import install_error_handlers

settings = load_settings()

# ── Logging setup ─────────────────────────────────────────────────────────────
LOG_LEVEL = settings.log_level
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Quiet noisy libraries unless we're in DEBUG
if LOG_LEVEL != "DEBUG":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)

logger = logging.getLogger("receiptlens")

app = FastAPI(
    title="Receipt Lens — Receipt Capture & Interpretation",
    description="Upload receipts, interpret them with an LLM, and track spending",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=bool(settings.cors_origins),  # only send credentials when origins are explicit
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(interpret.router, prefix="/api/interpret", tags=["interpret"])
app.include_router(summarize.router, prefix="/api/summarize", tags=["summarize"])
app.include_router(ocr.router,       prefix="/api/ocr",       tags=["ocr"])
app.include_router(receipts.router,  prefix="/api/receipts",  tags=["receipts"])
app.include_router(trends.router,    prefix="/api/trends",    tags=["trends"])


def mount_uploads(app: FastAPI, upload_dir: str, public_base: str) -> None:
    """Serve stored uploads.  The directory may not exist yet at import time;
    startup (or the first saved upload) creates it."""
    app.mount(public_base, StaticFiles(directory=upload_dir, check_dir=False), name="uploads")


mount_uploads(app, settings.upload_dir, settings.public_upload_base)


install_error_handlers(app)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "detail": "Internal server error"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if LOG_LEVEL == "DEBUG" or response.status_code >= 400:
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.DEBUG,
            "%s %s → %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
    return response

@app.on_event("startup")
async def on_startup():
    logger.info("Starting Receipt Lens v0.1.0  LOG_LEVEL=%s  DB=%s  MODEL=%s",
                LOG_LEVEL, settings.db_path, settings.llm_model)
    await init_db(settings.db_path)
    os.makedirs(settings.upload_dir, exist_ok=True)

@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


@app.get("/api/diagnose")
async def diagnose():
    """Check that all dependencies are working inside the container."""
    import subprocess
    results = {}

    # Tesseract binary
    try:
        r = subprocess.run(["tesseract", "--version"], capture_output=True, text=True, timeout=5)
        results["tesseract"] = {"ok": r.returncode == 0, "version": r.stdout.split("\n")[0].strip()}
    except FileNotFoundError:
        results["tesseract"] = {"ok": False, "error": "tesseract binary not found in PATH"}
    except (OSError, subprocess.SubprocessError) as e:
        results["tesseract"] = {"ok": False, "error": str(e)}

    from services.ocr_service import HEIF_AVAILABLE
    results["heic_support"] = {"ok": HEIF_AVAILABLE}

    upload_dir = settings.upload_dir
    results["upload_dir"] = {
        "ok": os.path.isdir(upload_dir) and os.access(upload_dir, os.W_OK),
        "path": upload_dir,
    }

    # Anthropic key: report presence only, never key material
    key = settings.anthropic_api_key
    results["anthropic_key"] = {
        "ok": bool(key and key.startswith("sk-")),
        "set": bool(key),
        "model": settings.llm_model,
    }

    return {"all_ok": all(v.get("ok") for v in results.values()), "checks": results}

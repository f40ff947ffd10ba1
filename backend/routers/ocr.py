"""
OCR Router

POST /api/ocr   — upload an image or PDF, store it, return the OCR text
"""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from config import Settings, get_settings
from models.schemas import OCRResult
from services.ocr_service import SUPPORTED_CONTENT_TYPES, OCRError, extract_text, is_pdf
from services.storage_service import LocalStorage, build_storage_path, get_storage

logger = logging.getLogger("receiptlens.ocr")
router = APIRouter()


@router.post("", response_model=OCRResult)
async def upload_and_recognize(
    file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
    storage: LocalStorage = Depends(get_storage),
):
    """
    Accept one document, keep a copy in upload storage, and OCR it.
    The text is what the client then sends to /api/interpret.
    """
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail='A file upload is required under the "file" field.')
    if len(contents) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File size must be less than {limit_mb:g}MB")

    content_type = file.content_type or "application/octet-stream"
    if content_type not in SUPPORTED_CONTENT_TYPES and not is_pdf(contents):
        raise HTTPException(status_code=400, detail="Please upload a JPEG, PNG, HEIC, or PDF file")

    stored_path = build_storage_path(file.filename)
    public_url = await run_in_threadpool(storage.save, contents, stored_path)

    # Tesseract is blocking; keep it off the event loop
    try:
        text, pages = await run_in_threadpool(extract_text, contents, content_type)
    except OCRError as e:
        logger.warning("OCR failed for %s: %s", stored_path, e)
        raise HTTPException(status_code=422, detail=f"OCR failed: {e}")

    logger.info("OCR'd %s: %d page(s), %d chars", stored_path, pages, len(text))
    return OCRResult(text=text, pages=pages, stored_path=stored_path, public_url=public_url)

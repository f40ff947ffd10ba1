"""
OCR Service — turns an uploaded receipt (photo or PDF) into raw text.

Images go straight to Tesseract after light preprocessing.  PDFs are
rasterized page by page with PyMuPDF and each page is OCR'd the same way;
page texts are joined with PAGE_BREAK so the model can tell pages apart.
"""
import io
import logging

import fitz  # PyMuPDF
import pytesseract
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

logger = logging.getLogger("receiptlens.ocr")

# Register HEIC/HEIF support via pillow-heif if available
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False
    logger.info("pillow-heif not installed; HEIC files will not be supported")

PAGE_BREAK = "\n\n--- Page Break ---\n\n"
PDF_RENDER_DPI = 300

SUPPORTED_CONTENT_TYPES = {
    "image/png", "image/jpeg", "image/heic", "image/heif", "application/pdf",
}


class OCRError(Exception):
    """Raised when a document cannot be opened or recognized."""
    pass


def is_pdf(data: bytes, content_type: str | None = None) -> bool:
    return content_type == "application/pdf" or data[:4] == b"%PDF"


def preprocess_image(image: Image.Image) -> Image.Image:
    """
    Improve OCR accuracy:
    - Normalise EXIF orientation (phone photos are often rotated in metadata)
    - Convert to grayscale
    - Upscale if small
    - Enhance contrast and sharpen
    """
    img = ImageOps.exif_transpose(image)
    img = img.convert("L")

    w, h = img.size
    if w < 800:
        scale = 800 / w
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

    img = ImageEnhance.Contrast(img).enhance(2.0)
    img = img.filter(ImageFilter.SHARPEN)
    return img


def _recognize(image: Image.Image) -> str:
    try:
        text = pytesseract.image_to_string(preprocess_image(image), config="--psm 6")
    except pytesseract.TesseractNotFoundError as e:
        raise OCRError("Tesseract OCR binary not found in PATH") from e
    except pytesseract.TesseractError as e:
        raise OCRError(f"Tesseract failed: {e}") from e
    return text.strip()


def extract_text_from_image(image_bytes: bytes) -> str:
    """Run Tesseract on image bytes (JPEG, PNG, HEIC with pillow-heif)."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
    except Exception as e:
        msg = str(e)
        if not HEIF_AVAILABLE and ("heif" in msg.lower() or "heic" in msg.lower()):
            raise OCRError("HEIC/HEIF files require pillow-heif") from e
        raise OCRError(f"Cannot open image: {msg}") from e

    if image.mode not in ("RGB", "L", "RGBA"):
        image = image.convert("RGB")
    return _recognize(image)


def extract_text_from_pdf(pdf_bytes: bytes) -> list[str]:
    """Rasterize every page and OCR it.  Returns one string per page."""
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise OCRError(f"Cannot open PDF: {e}") from e

    pages = []
    try:
        if doc.page_count == 0:
            raise OCRError("PDF has no pages")
        zoom = PDF_RENDER_DPI / 72
        for page in doc:
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            image = Image.open(io.BytesIO(pix.tobytes("png")))
            pages.append(_recognize(image))
            logger.debug("OCR'd PDF page %d/%d (%d chars)",
                         page.number + 1, doc.page_count, len(pages[-1]))
    finally:
        doc.close()
    return pages


def extract_text(data: bytes, content_type: str | None = None) -> tuple[str, int]:
    """OCR an uploaded document.  Returns (text, page_count)."""
    if is_pdf(data, content_type):
        pages = extract_text_from_pdf(data)
        return PAGE_BREAK.join(pages), len(pages)
    return extract_text_from_image(data), 1

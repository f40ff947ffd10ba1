"""
Error taxonomy for the receipt pipeline.

Every failure a caller can branch on has its own class and HTTP status.
Routers let these propagate; the handler registered in ``main.py`` turns
them into ``{"error": ..., "detail": ...}`` JSON bodies.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("receiptlens.errors")


class ReceiptPipelineError(Exception):
    """Base class.  Subclasses set ``status_code``."""
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__

    @property
    def error(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict[str, Any]:
        return {"error": self.error, "detail": self.detail}


class BadRequest(ReceiptPipelineError):
    """Missing or invalid input, detected before any external call."""
    status_code = 400


class UpstreamUnavailable(ReceiptPipelineError):
    """Transport or auth failure talking to the model service."""
    status_code = 502


class UpstreamTimeout(ReceiptPipelineError):
    """The model service did not answer within the configured timeout."""
    status_code = 504


class EmptyCompletion(ReceiptPipelineError):
    """The call succeeded but returned no usable text."""
    status_code = 502


class MalformedResponse(ReceiptPipelineError):
    """Completion text could not be parsed as a receipt record.

    Keeps the original completion so operators can see exactly what the
    model said.
    """
    status_code = 502

    def __init__(self, detail: str, raw_text: str, diagnostic: Optional[str] = None):
        super().__init__(detail)
        self.raw_text = raw_text
        self.diagnostic = diagnostic

    def payload(self) -> dict[str, Any]:
        return {
            **super().payload(),
            "diagnostic": self.diagnostic,
            "rawResponse": self.raw_text,
        }


class IncompleteData(ReceiptPipelineError):
    """Parsed fine, but vendor or total is missing."""
    status_code = 422

    def __init__(self, detail: str, data: Any = None):
        super().__init__(detail)
        self.data = data

    def payload(self) -> dict[str, Any]:
        return {**super().payload(), "data": self.data}


class InvalidSummaryRequest(ReceiptPipelineError):
    status_code = 400


class ReceiptNotFound(ReceiptPipelineError):
    status_code = 404


def install_error_handlers(app: FastAPI) -> None:
    """Render pipeline errors as ``{"error", "detail", ...}`` JSON with their status."""
    async def pipeline_error_handler(request: Request, exc: ReceiptPipelineError):
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "%s %s failed: %s: %s", request.method, request.url.path, exc.error, exc.detail,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    app.add_exception_handler(ReceiptPipelineError, pipeline_error_handler)

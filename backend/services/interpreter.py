"""
Receipt Interpretation Pipeline

    OCR text → prompt → model call → sanitize/parse → validate → receipt

Stages run strictly in order; each attempt is independent and holds no
state between calls, so concurrent interpretations need no coordination.
"""
import logging
from datetime import date
from typing import Any, Callable, Optional

from fastapi import Depends

from models.schemas import InterpretationResult
from services.errors import BadRequest
from services.llm_client import INTERPRET_SETTINGS, LLMClient, get_llm_client
from services.prompt_builder import build_interpretation_prompt
from services.receipt_validator import validate_receipt
from services.response_parser import parse_completion

logger = logging.getLogger("receiptlens.interpret")


class ReceiptInterpreter:
    def __init__(self, llm: LLMClient, today: Optional[Callable[[], date]] = None):
        self.llm = llm
        self.today = today or date.today

    async def interpret(self, ocr_text: Any) -> InterpretationResult:
        if not isinstance(ocr_text, str) or not ocr_text.strip():
            raise BadRequest("OCR text is required and must be a non-empty string")

        current_year = self.today().year
        prompt = build_interpretation_prompt(ocr_text, current_year)

        logger.info("Interpreting %d chars of OCR text", len(ocr_text))
        raw = await self.llm.complete(prompt, INTERPRET_SETTINGS)
        candidate = parse_completion(raw)
        outcome = validate_receipt(candidate, current_year)

        for warning in outcome.warnings:
            logger.info("Interpretation warning for %r: %s", outcome.receipt.vendor, warning)
        logger.info(
            "Interpreted receipt: vendor=%r total=%.2f items=%d confidence=%.2f",
            outcome.receipt.vendor, outcome.receipt.total,
            len(outcome.receipt.items), outcome.receipt.confidence,
        )

        return InterpretationResult(
            **outcome.receipt.model_dump(),
            tax_confidence=outcome.tax_confidence,
            warnings=outcome.warnings,
            suggestions=outcome.suggestions,
        )


def get_interpreter(llm: LLMClient = Depends(get_llm_client)) -> ReceiptInterpreter:
    return ReceiptInterpreter(llm)

"""
Interpret Router

POST /api/interpret   — OCR text → structured receipt (nothing is saved)
GET  /api/interpret   — usage hint
"""
from fastapi import APIRouter, Depends

from models.schemas import InterpretRequest, InterpretResponse
from services.interpreter import ReceiptInterpreter, get_interpreter

router = APIRouter()


@router.post("", response_model=InterpretResponse)
async def interpret_receipt(
    body: InterpretRequest,
    interpreter: ReceiptInterpreter = Depends(get_interpreter),
):
    """
    Run the interpretation pipeline.  Failures propagate as pipeline errors
    and are rendered by the handler in main.py (400/422/502/504).
    """
    result = await interpreter.interpret(body.ocr_text)
    return InterpretResponse(data=result)


@router.get("")
async def interpret_info():
    return {
        "message": "Receipt interpretation API is running",
        "method": "POST",
        "expectedBody": {"ocrText": "string - raw OCR text from receipt"},
    }

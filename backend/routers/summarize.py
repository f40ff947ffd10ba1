"""
Summarize Router

POST /api/summarize   — {type: "single", receipt} or {type: "bulk", receipts}
"""
from fastapi import APIRouter, Depends

from models.schemas import SummarizeRequest, SummaryResponse
from services.summary_service import SummaryGenerator, get_summary_generator

router = APIRouter()


@router.post("", response_model=SummaryResponse)
async def summarize(
    body: SummarizeRequest,
    generator: SummaryGenerator = Depends(get_summary_generator),
):
    summary = await generator.summarize(body)
    return SummaryResponse(summary=summary)


@router.get("")
async def summarize_info():
    return {
        "message": "AI Summary API is running",
        "method": "POST",
        "expectedBody": {
            "type": "'single' | 'bulk'",
            "receipt": "Receipt object (for single)",
            "receipts": "Receipt[] array (for bulk)",
        },
    }

"""
Response Sanitizer & Parser

Model output is untrusted free text.  Strip any code-fence wrapping the
model added despite being told not to, then require a JSON object.
"""
import json
import logging
import re

from services.errors import MalformedResponse

logger = logging.getLogger("receiptlens.parser")

# ``` or ```json / ```JSON at the start, ``` at the end, whitespace tolerant
_LEADING_FENCE_RE = re.compile(r'^\s*```[A-Za-z0-9_+-]*[ \t]*\n?')
_TRAILING_FENCE_RE = re.compile(r'\n?\s*```\s*$')


def strip_code_fences(text: str) -> str:
    """Remove a surrounding fenced-code block and trim.

    Idempotent: clean text comes back unchanged (apart from trimming).
    """
    cleaned = text.strip()
    cleaned = _LEADING_FENCE_RE.sub('', cleaned, count=1)
    cleaned = _TRAILING_FENCE_RE.sub('', cleaned, count=1)
    return cleaned.strip()


def parse_completion(raw: str) -> dict:
    """Sanitize ``raw`` and parse it as a JSON object.

    Raises MalformedResponse (with the untouched raw text attached) when the
    remainder is not valid JSON or is not an object.
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse model response as JSON: %s", e)
        logger.error("Raw response: %s", raw)
        raise MalformedResponse("Failed to parse model response", raw_text=raw, diagnostic=str(e)) from e

    if not isinstance(data, dict):
        logger.error("Model response is JSON but not an object: %s", raw)
        raise MalformedResponse(
            "Model response is not a JSON object",
            raw_text=raw,
            diagnostic=f"expected object, got {type(data).__name__}",
        )
    return data

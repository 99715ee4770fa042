import json
import logging
import re

import google.generativeai as genai
from pydantic import ValidationError

from app.models.schemas import AiParsedResult
from app.services import gemini
from constants import PARSE_RESPONSE_SCHEMA, PROMPTS

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*")
_FENCE_END = re.compile(r"\s*```$")


class AiUnavailableError(RuntimeError):
    """Raised when no AI model is configured (missing API key)."""


def strip_code_fences(text: str) -> str:
    text = (text or "").strip()
    if text.startswith("```"):
        text = _FENCE_END.sub("", _FENCE_START.sub("", text))
    return text


def decode_result(text: str) -> AiParsedResult | None:
    json_string = strip_code_fences(text)
    if not json_string:
        return None
    try:
        return AiParsedResult.model_validate(json.loads(json_string))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Unusable AI answer {json_string!r}: {e}")
        return None


async def process_financial_input(
    text: str | None = None,
    audio: bytes | None = None,
    mime_type: str = "audio/webm",
    current_mep=None,
) -> AiParsedResult | None:
    """
    Extracts a transaction from natural language.

    Either ``text`` or ``audio`` (raw bytes plus MIME type) is sent together
    with the instruction prompt. Returns None whenever the model fails or
    answers something that doesn't fit the schema.
    """
    if not gemini.model:
        raise AiUnavailableError("AI Service unavailable (No API Key)")

    if text:
        parts = [text]
    elif audio:
        parts = [{"mime_type": mime_type, "data": audio}]
    else:
        return None

    prompt = PROMPTS["parse"].format(current_mep=current_mep)

    try:
        response = await gemini.model.generate_content_async(
            [*parts, prompt],
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=PARSE_RESPONSE_SCHEMA,
            ),
        )
        return decode_result(response.text)

    except Exception as e:
        logger.error(f"Error processing financial input: {e}")
        return None

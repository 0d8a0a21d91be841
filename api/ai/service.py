"""
AI tools: spam classification (chat completions) and background removal (Replicate).
"""

from __future__ import annotations

import base64
import logging
import math

import httpx

from core import config, llm, replicate

from . import prompts, schemas

logger = logging.getLogger(__name__)

REMBG_VERSION = "fb8af171cfa1616ddcf1242c093f9c46bcada5ad4cf6f2fbe8b81b330ec5c003"
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}


def spam_model() -> str:
    return config.env_str("SPAM_MODEL", "gpt-3.5-turbo")


def rembg_version() -> str:
    return config.env_str("REPLICATE_MODEL_VERSION", REMBG_VERSION)


def max_upload_bytes() -> int:
    return config.env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)


def _percent(score: float) -> int:
    # Half-up rounding.
    return int(math.floor(score * 100 + 0.5))


def spam_explanation(is_spam: bool, score: float) -> str:
    confidence = _percent(score)
    if is_spam:
        return f"This message was classified as spam with {confidence}% confidence."
    return f"This message appears to be legitimate with {confidence}% confidence."


async def detect_spam(text: str) -> schemas.SpamPrediction:
    processed = (text or "").strip()
    if not processed:
        return schemas.SpamPrediction(
            label="Not Spam",
            score=1,
            explanation="Empty messages are considered non-spam by default.",
        )

    data = await llm.chat_json(
        model=spam_model(),
        messages=[
            {"role": "system", "content": prompts.spam_system_prompt()},
            {"role": "user", "content": processed},
        ],
    )
    is_spam = data.get("isSpam")
    confidence = data.get("confidence")
    if not isinstance(is_spam, bool) or not isinstance(confidence, (int, float)):
        raise llm.LLMError("Invalid response from spam classifier.")

    score = float(confidence)
    return schemas.SpamPrediction(
        label="Spam" if is_spam else "Not Spam",
        score=score,
        explanation=spam_explanation(is_spam, score),
    )


def to_data_url(image_bytes: bytes, content_type: str) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


async def remove_background(image_bytes: bytes, content_type: str) -> schemas.BackgroundRemovalResponse:
    logger.info("background_removal_started content_type=%s size=%s", content_type, len(image_bytes))
    try:
        output = await replicate.run_prediction(
            rembg_version(),
            {"image": to_data_url(image_bytes, content_type)},
        )
    except (replicate.ReplicateError, httpx.HTTPError) as exc:
        logger.exception("background_removal_failed")
        return schemas.BackgroundRemovalResponse(success=False, url="", error=str(exc) or "Unknown error occurred")

    if isinstance(output, list):
        output = output[0] if output else None
    if not output:
        logger.error("background_removal_empty_output")
        return schemas.BackgroundRemovalResponse(
            success=False,
            url="",
            error="Failed to get output from background removal",
        )

    logger.info("background_removal_succeeded url=%s", output)
    return schemas.BackgroundRemovalResponse(success=True, url=str(output))

"""
Keyword content: get-or-generate with the LLM, stored once per slug.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status

from core import config, llm, rate_limit

from . import prompts, repository

logger = logging.getLogger(__name__)

RATE_LIMIT_NAMESPACE = "content-generation"
UNAVAILABLE_DETAIL = "Content generation service is currently unavailable. Please try again later."
AI_UNAVAILABLE_DETAIL = "Our AI service is temporarily unavailable. Please try again in a moment."
STORAGE_FAILED_DETAIL = "Failed to save generated content. Please try again later."

MODELS_BY_TIER = {
    "premium": "gpt-4-1106-preview",
    "standard": "gpt-3.5-turbo-1106",
    "basic": "gpt-3.5-turbo",
}


def model_tier() -> str:
    tier = config.env_str("CONTENT_MODEL_TIER", "basic").lower()
    return tier if tier in MODELS_BY_TIER else "basic"


def model_for_tier(tier: str) -> str:
    return MODELS_BY_TIER.get(tier, MODELS_BY_TIER["basic"])


def slug_to_keyword(slug: str) -> str:
    return " ".join(slug.split("/")).replace("-", " ")


def clean_slug(slug: str | None) -> str:
    return (slug or "").strip().strip("/")


async def generate_content(slug: str) -> dict[str, Any]:
    tier = model_tier()
    keyword = slug_to_keyword(slug)
    data = await llm.chat_json(
        model=model_for_tier(tier),
        messages=[
            {"role": "system", "content": prompts.system_prompt(tier)},
            {"role": "user", "content": prompts.user_prompt(keyword)},
        ],
        temperature=0.7,
        max_tokens=2500,
    )

    title = data.get("title")
    body = data.get("body")
    if not isinstance(title, str) or not title.strip() or not isinstance(body, str) or not body.strip():
        raise llm.LLMError("Failed to parse generated content.")
    return {"title": title.strip(), "body": body, "generated_at": datetime.now(timezone.utc)}


async def _generate_and_store(slug: str) -> dict[str, Any]:
    if not llm.is_configured():
        logger.error("content_generation_unconfigured slug=%s", slug)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=UNAVAILABLE_DETAIL)

    try:
        generated = await generate_content(slug)
    except llm.LLMError as exc:
        logger.exception("content_generation_failed slug=%s", slug)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=AI_UNAVAILABLE_DETAIL) from exc

    try:
        stored = await repository.insert_content(slug=slug, title=generated["title"], body=generated["body"])
    except RuntimeError as exc:
        logger.exception("content_storage_failed slug=%s", slug)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=STORAGE_FAILED_DETAIL) from exc

    logger.info("content_generated slug=%s tier=%s", slug, model_tier())
    return stored


async def get_or_generate(slug: str) -> dict[str, Any]:
    slug = clean_slug(slug)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content slug is required")

    await rate_limit.check_limit(
        RATE_LIMIT_NAMESPACE,
        slug,
        limit=rate_limit.search_limit_per_minute(),
    )

    existing = await repository.get_content(slug)
    if existing is not None:
        return existing
    return await _generate_and_store(slug)


async def pregenerate(slugs: list[str]) -> dict[str, int]:
    """
    Generate missing slugs one at a time. Failures are counted, not raised.
    """
    counts = {"requested": len(slugs), "generated": 0, "skipped": 0, "failed": 0}
    logger.info("content_pregeneration_started count=%s", len(slugs))

    for raw_slug in slugs:
        slug = clean_slug(raw_slug)
        if not slug or await repository.get_content(slug) is not None:
            counts["skipped"] += 1
            continue
        try:
            await _generate_and_store(slug)
        except HTTPException:
            counts["failed"] += 1
            continue
        counts["generated"] += 1

    logger.info(
        "content_pregeneration_finished generated=%s skipped=%s failed=%s",
        counts["generated"],
        counts["skipped"],
        counts["failed"],
    )
    return counts

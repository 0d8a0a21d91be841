"""
Guide orchestration.

Search flow:
1) Normalize the term and apply the per-term rate limit
2) Return an existing entry (bumping its popularity)
3) Otherwise ask the LLM to write one, store it and return it
"""

from __future__ import annotations

import logging
import random
import re
from typing import Any

from fastapi import HTTPException, status
from pydantic import ValidationError

from core import config, llm, rate_limit
from core.utils import normalize_slug

from . import prompts, repository, schemas

logger = logging.getLogger(__name__)

AI_CONTRIBUTOR_ID = "ai-researcher"
SEARCH_RATE_LIMIT_NAMESPACE = "guide-search"
SEARCH_RATE_LIMIT_DETAIL = "Too many searches. Please try again in a minute."
GENERATION_UNAVAILABLE_DETAIL = (
    "Our researchers are currently indisposed in the Restaurant at the End of the Universe. "
    "Please try again later."
)
SUGGESTIONS_MIN_CHARS = 3

_NON_WORD = re.compile(r"\W+")


def guide_model() -> str:
    return config.env_str("GUIDE_MODEL", "gpt-4-1106-preview")


def suggestions_model() -> str:
    return config.env_str("SUGGESTIONS_MODEL", "gpt-3.5-turbo")


def _tokens(text: str) -> list[str]:
    return _NON_WORD.split((text or "").lower())


def build_search_vector(
    normalized_term: str,
    *,
    content: str = "",
    where_to_find: str = "",
    what_to_avoid: str = "",
) -> str:
    parts = [
        normalized_term,
        *normalized_term.split(" "),
        *_tokens(content),
        *_tokens(where_to_find),
        *_tokens(what_to_avoid),
    ]
    return " ".join(part for part in parts if part)


async def _with_cross_references(entry: dict[str, Any]) -> dict[str, Any]:
    entry["cross_references"] = await repository.list_cross_references(int(entry["id"]))
    return entry


async def find_existing_entry(search_term: str) -> dict[str, Any] | None:
    """
    Look up an entry by normalized term; a hit counts as one view.
    """
    normalized = normalize_slug(search_term)
    if not normalized:
        return None

    entry = await repository.find_entry(normalized)
    if entry is None:
        return None

    entry["popularity"] = await repository.increment_popularity(int(entry["id"]))
    return await _with_cross_references(entry)


async def get_similar_searches(term: str, *, limit: int = 5) -> list[dict[str, Any]]:
    return await repository.find_similar(term.strip().lower(), limit=limit)


async def generate_entry(search_term: str) -> dict[str, Any]:
    normalized = normalize_slug(search_term)
    data = await llm.chat_json(
        model=guide_model(),
        messages=[
            {"role": "system", "content": prompts.entry_system_prompt()},
            {"role": "user", "content": prompts.entry_user_prompt(search_term)},
        ],
        temperature=0.9,
        max_tokens=800,
    )
    try:
        generated = schemas.GeneratedEntry.model_validate(data)
    except ValidationError as exc:
        raise llm.LLMError("Model returned an incomplete guide entry.") from exc

    entry = await repository.create_entry(
        search_term=normalized,
        content=generated.content,
        travel_advice=generated.travel_advice,
        where_to_find=generated.where_to_find,
        what_to_avoid=generated.what_to_avoid,
        fun_fact=generated.fun_fact,
        advertisement=generated.advertisement,
        reliability=generated.reliability,
        danger_level=generated.danger_level,
        contributor_id=AI_CONTRIBUTOR_ID,
        search_vector=build_search_vector(
            normalized,
            content=generated.content,
            where_to_find=generated.where_to_find,
            what_to_avoid=generated.what_to_avoid,
        ),
        popularity=1,
    )
    logger.info("guide_entry_generated entry_id=%s search_term=%s", entry["id"], normalized)
    entry["cross_references"] = []
    return entry


async def search(search_term: str) -> dict[str, Any]:
    normalized = normalize_slug(search_term)
    if not normalized:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search term is required.")

    await rate_limit.check_limit(
        SEARCH_RATE_LIMIT_NAMESPACE,
        normalized,
        limit=rate_limit.search_limit_per_minute(),
        detail=SEARCH_RATE_LIMIT_DETAIL,
    )

    existing = await find_existing_entry(normalized)
    if existing is not None:
        return existing

    try:
        return await generate_entry(search_term)
    except (llm.LLMError, RuntimeError) as exc:
        logger.exception("guide_generation_failed search_term=%s", normalized)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=GENERATION_UNAVAILABLE_DETAIL,
        ) from exc


async def get_entry_page(slug: str) -> dict[str, Any]:
    entry = await find_existing_entry(slug)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found.")

    recent = await repository.list_recent(limit=4)
    return {
        "entry": entry,
        "recent_entries": [row for row in recent if row["id"] != entry["id"]],
    }


async def suggest(term: str) -> list[str]:
    """
    Ask the LLM for 2-3 completions. Unparsable output yields no suggestions.
    """
    try:
        data = await llm.chat_json(
            model=suggestions_model(),
            messages=[
                {"role": "system", "content": prompts.suggestions_system_prompt()},
                {"role": "user", "content": prompts.suggestions_user_prompt(term)},
            ],
            temperature=0.7,
            max_tokens=150,
        )
    except llm.LLMOutputError:
        logger.warning("suggestions_unparsable term=%s", term, exc_info=True)
        return []

    suggestions = data.get("suggestions")
    if not isinstance(suggestions, list):
        return []
    return [str(item).strip() for item in suggestions if isinstance(item, str) and item.strip()]


async def validate_term(term: str) -> dict[str, Any]:
    try:
        data = await llm.chat_json(
            model=suggestions_model(),
            messages=[
                {"role": "system", "content": prompts.validation_system_prompt()},
                {"role": "user", "content": prompts.validation_user_prompt(term)},
            ],
            temperature=0.3,
            max_tokens=150,
        )
    except llm.LLMOutputError:
        logger.warning("validation_unparsable term=%s", term, exc_info=True)
        return {"valid": False, "reason": "Failed to validate term"}

    if not isinstance(data.get("valid"), bool):
        return {"valid": False, "reason": "Failed to validate term"}

    verdict: dict[str, Any] = {"valid": data["valid"], "reason": str(data.get("reason") or "")}
    if data["valid"] and data.get("category"):
        verdict["category"] = str(data["category"])
    return verdict


async def submit_entry(payload: schemas.SubmissionRequest) -> dict[str, Any]:
    normalized = normalize_slug(payload.search_term)
    if not normalized:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search term is required.")

    entry = await repository.create_entry(
        search_term=normalized,
        content=payload.content,
        travel_advice=payload.travel_advice,
        where_to_find=payload.where_to_find,
        what_to_avoid=payload.what_to_avoid,
        fun_fact=payload.fun_fact,
        advertisement=payload.advertisement or "",
        reliability=random.randint(60, 99),
        danger_level=random.randint(0, 99),
        contributor_id=AI_CONTRIBUTOR_ID,
        search_vector=build_search_vector(
            normalized,
            content=payload.content,
            where_to_find=payload.where_to_find,
            what_to_avoid=payload.what_to_avoid,
        ),
        popularity=1,
    )
    logger.info("guide_entry_submitted entry_id=%s search_term=%s", entry["id"], normalized)
    return entry


async def list_submissions(query: schemas.SubmissionsQuery) -> dict[str, Any]:
    rows, total = await repository.list_submissions(
        limit=query.limit,
        offset=query.offset,
        search=(query.search or "").strip() or None,
        start_date=query.start_date,
        end_date=query.end_date,
        order_by=query.order_by,
        order_dir=query.order_dir,
    )
    return {
        "data": rows,
        "pagination": {
            "total": total,
            "page": query.page,
            "limit": query.limit,
            "totalPages": (total + query.limit - 1) // query.limit,
        },
    }

"""
Guide API endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core import llm

from . import repository, schemas, service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guide")


@router.get("/search/similar")
async def similar_searches(term: str = Query(default="", max_length=100)):
    term = term.strip()
    if not term:
        return JSONResponse(status_code=400, content=[])

    try:
        return await service.get_similar_searches(term)
    except Exception:
        logger.exception("similar_searches_failed term=%s", term)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch similar searches"})


@router.get("/search/suggestions")
async def search_suggestions(term: str = Query(default="", max_length=100)):
    term = term.strip()
    if len(term) < service.SUGGESTIONS_MIN_CHARS:
        return {"suggestions": []}

    try:
        return {"suggestions": await service.suggest(term)}
    except llm.LLMError:
        logger.exception("suggestions_failed term=%s", term)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate suggestions", "suggestions": []},
        )


@router.get("/search/validate")
async def validate_search(term: str = Query(default="", max_length=100)):
    term = term.strip()
    if not term:
        return JSONResponse(status_code=400, content={"valid": False, "reason": "Empty search term"})

    try:
        return await service.validate_term(term)
    except llm.LLMError:
        logger.exception("validation_failed term=%s", term)
        return JSONResponse(status_code=500, content={"valid": False, "reason": "Failed to validate term"})


@router.post("/search")
async def search(payload: schemas.SearchRequest) -> dict:
    return await service.search(payload.search_term)


@router.get("/entries/recent")
async def recent_entries(limit: int = Query(10, ge=1, le=50)) -> list[dict]:
    return await repository.list_recent(limit=limit)


@router.get("/entries/popular")
async def popular_entries(limit: int = Query(10, ge=1, le=50)) -> list[dict]:
    return await repository.list_popular(limit=limit)


@router.get("/entries/{slug}")
async def entry_page(slug: str) -> dict:
    return await service.get_entry_page(slug)


@router.post("/submissions")
async def submit_entry(payload: schemas.SubmissionRequest):
    try:
        entry = await service.submit_entry(payload)
    except RuntimeError:
        logger.exception("guide_submission_failed search_term=%s", payload.search_term)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to submit entry"})
    return {"success": True, "data": entry}


@router.get("/submissions")
async def list_submissions(request: Request):
    try:
        query = schemas.SubmissionsQuery.model_validate(dict(request.query_params))
    except ValidationError as exc:
        details = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors(include_url=False)
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid parameters", "details": details})

    try:
        return await service.list_submissions(query)
    except Exception:
        logger.exception("submissions_fetch_failed page=%s", query.page)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch submissions"})

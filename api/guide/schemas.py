"""
Guide API schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ORDER_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "searchTerm": "search_term",
    "id": "id",
}


class SearchRequest(BaseModel):
    search_term: str = Field(..., min_length=1, max_length=100)


class SubmissionRequest(BaseModel):
    search_term: str = Field(..., min_length=2, max_length=100)
    content: str = Field(..., min_length=5, max_length=2000)
    travel_advice: str = Field(..., min_length=5, max_length=500)
    where_to_find: str = Field(..., min_length=5, max_length=500)
    what_to_avoid: str = Field(..., min_length=5, max_length=500)
    fun_fact: str = Field(..., min_length=5, max_length=500)
    advertisement: str | None = Field(default=None, max_length=500)

    @field_validator("advertisement")
    @classmethod
    def _blank_advertisement(cls, value: str | None) -> str:
        return value or ""


class GeneratedEntry(BaseModel):
    """
    Shape of an LLM-written entry. Keys arrive camelCased.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1)
    travel_advice: str = Field(default="", alias="travelAdvice")
    where_to_find: str = Field(default="", alias="whereToFind")
    what_to_avoid: str = Field(default="", alias="whatToAvoid")
    fun_fact: str = Field(default="", alias="funFact")
    advertisement: str = ""
    reliability: int = 50
    danger_level: int = Field(default=50, alias="dangerLevel")

    @field_validator("reliability", "danger_level", mode="before")
    @classmethod
    def _clamp_percent(cls, value: object) -> int:
        try:
            number = int(float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 50
        return max(0, min(number, 100))


class SubmissionsQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    search: str | None = None
    start_date: datetime | None = Field(default=None, alias="startDate")
    end_date: datetime | None = Field(default=None, alias="endDate")
    order_by: Literal["createdAt", "updatedAt", "searchTerm", "id"] = Field(default="createdAt", alias="orderBy")
    order_dir: Literal["asc", "desc"] = Field(default="desc", alias="orderDir")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

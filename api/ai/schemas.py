"""
AI tool schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SpamRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class SpamPrediction(BaseModel):
    label: Literal["Spam", "Not Spam"]
    score: float
    explanation: str


class BackgroundRemovalResponse(BaseModel):
    success: bool
    url: str = ""
    error: str | None = None

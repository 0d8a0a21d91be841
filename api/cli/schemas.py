"""
CLI API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegistryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., min_length=1, max_length=500, pattern=r"^https?://")
    description: str = Field(default="", max_length=500)
    base_component_url: str | None = Field(default=None, max_length=500)
    base_block_url: str | None = Field(default=None, max_length=500)


class InstallRequest(BaseModel):
    component_url: str = Field(..., min_length=1, max_length=1000, pattern=r"^[^-\s]")
    overwrite: bool = False
    style: str | None = Field(default=None, max_length=100, pattern=r"^[A-Za-z0-9_-]+$")
    typescript: bool = False
    path: str | None = Field(default=None, max_length=500, pattern=r"^[^-]")

"""
Section / subsection schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubsectionInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)


# Subsections may be sent as bare names or as {"name": ...} objects.
SubsectionItem = str | SubsectionInput


class SectionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    subsections: list[SubsectionItem] = Field(default_factory=list)


class SectionUpdateRequest(BaseModel):
    """
    Omitted fields are left unchanged; an empty `subsections` list clears them.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    subsections: list[SubsectionItem] | None = None


class Subsection(BaseModel):
    name: str
    slug: str


class SectionResponse(BaseModel):
    id: int
    name: str
    slug: str
    subsections: list[Subsection]
    created_at: datetime

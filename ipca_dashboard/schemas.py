from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class FilterCriteriaModel(BaseModel):
    year: int = Field(default=0, ge=0)
    month: int = Field(default=0, ge=0, le=12)
    category: Literal["all", "historical", "projection"] = "all"

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CountrySelectionModel(BaseModel):
    country_code: str = Field(min_length=1)
    country_name: Optional[str] = None


class DisciplineSelectionModel(BaseModel):
    discipline: Optional[str] = None


class ZoomModel(BaseModel):
    factor: float = Field(gt=0)
    anchor: float = Field(default=0.5, ge=0.0, le=1.0)


class PanModel(BaseModel):
    dx: float


class TransformModel(BaseModel):
    k: float = Field(default=1.0, ge=1.0)
    x: float = 0.0


class WindowModel(BaseModel):
    k: float = Field(default=1.0, ge=1.0)
    start: float = Field(default=0.0, ge=0.0, le=1.0)


class SelectionModel(BaseModel):
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    discipline: Optional[str] = None

"""Pydantic request/response models for the record sink API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CategoryIn(BaseModel):
    """One spending category as the visitor left it."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Category identifier", examples=["infrastructure"])
    name: str = Field("", description="Display name")
    description: str = Field("", description="Category description")
    percentage: float = Field(..., description="Assigned percentage, unclamped", examples=[30])
    amount: float = Field(0.0, description="percentage / 100 * totalBudget")
    color: str = Field("", description="Display colour", examples=["#FF8A65"])


class AllocationIn(BaseModel):
    """A budget allocation submission, minus server-assigned fields."""

    model_config = ConfigDict(extra="allow")

    municipalityId: str = Field(..., description="Municipality identifier")
    municipalityName: str = Field(..., description="Municipality display name")
    totalBudget: float = Field(..., ge=0, description="Total annual budget at submission time")
    categories: list[CategoryIn] = Field(..., description="Every category at submission time")
    overBudget: bool = Field(..., description="True iff percentages summed to more than 100")
    overBudgetIdeas: str | None = Field(None, description="Revenue ideas when over budget")


class AllocationCreated(BaseModel):
    success: bool = True
    id: str
    message: str


class AllocationList(BaseModel):
    success: bool = True
    count: int
    data: list[dict[str, Any]]


class ErrorOut(BaseModel):
    success: bool = False
    message: str
    error: str


class HealthOut(BaseModel):
    status: str = Field(..., examples=["ok"])
    message: str
    timestamp: str

"""Data models used across the pipeline and the record sink."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping


@dataclass(frozen=True)
class BoundaryFeature:
    geometry: dict[str, Any] | None
    properties: Mapping[str, Any]
    feature_id: str | int | None = None

    def to_geojson(self) -> dict[str, Any]:
        feature: dict[str, Any] = {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": self.geometry,
        }
        if self.feature_id is not None:
            feature["id"] = self.feature_id
        return feature


@dataclass(frozen=True)
class BudgetSources:
    """Budget split in millions of the currency unit."""

    self_collected: float
    state_allocated: float
    subsidies: float

    def to_dict(self) -> dict[str, float]:
        return {
            "selfCollected": self.self_collected,
            "stateAllocated": self.state_allocated,
            "subsidies": self.subsidies,
        }


@dataclass(frozen=True)
class MunicipalityRecord:
    id: str
    name: str
    municipality_type: str
    type_label: str
    province: str
    district: str
    budget: float
    budget_sources: BudgetSources
    population: int | None = None
    area: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type_label,
            "municipalityType": self.municipality_type,
            "province": self.province,
            "district": self.district,
            "budget": self.budget,
            "population": self.population,
            "area": self.area,
            "budgetSources": self.budget_sources.to_dict(),
        }


@dataclass(frozen=True)
class AllocationCategory:
    id: str
    name: str
    description: str
    percentage: float
    color: str
    amount: float = 0.0

    def with_percentage(self, percentage: float, total_budget: float) -> "AllocationCategory":
        return replace(self, percentage=percentage, amount=percentage / 100 * total_budget)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AllocationSubmission:
    municipality_id: str
    municipality_name: str
    total_budget: float
    categories: tuple[AllocationCategory, ...]
    over_budget: bool
    over_budget_ideas: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "municipalityId": self.municipality_id,
            "municipalityName": self.municipality_name,
            "totalBudget": self.total_budget,
            "categories": [category.to_dict() for category in self.categories],
            "overBudget": self.over_budget,
        }
        if self.over_budget_ideas is not None:
            payload["overBudgetIdeas"] = self.over_budget_ideas
        return payload

"""Resolve loosely-typed boundary properties into municipality records.

Source property bags spell the same logical attribute several ways and carry
numbers as formatted strings. ``FIELD_TABLE`` lists, per logical field, the
raw keys to try in priority order and the parser to apply; a parse failure on
one key falls through to the next and finally to the field default.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from budgetmap.common.constants import MILLION
from budgetmap.common.errors import ParseError
from budgetmap.common.ids import content_digest
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.models import BudgetSources, MunicipalityRecord

logger = get_logger(__name__)

DEFAULT_TYPE_LABEL = "เทศบาลตำบล"
UNKNOWN = "Unknown"

# Checked in order; the first matching type wins.
TYPE_TOKENS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("city", ("นคร", "nakhon", "city")),
    ("town", ("เมือง", "mueang", "town")),
)
FALLBACK_TYPE = "subdistrict"

DEFAULT_BUDGETS = {
    "city": 1_200_000_000.0,
    "town": 400_000_000.0,
    "subdistrict": 80_000_000.0,
}

# self-collected / state-allocated / subsidies, as fractions of the total budget
BUDGET_SOURCE_SPLITS = {
    "city": (0.30, 0.25, 0.45),
    "town": (0.20, 0.30, 0.50),
    "subdistrict": (0.15, 0.30, 0.55),
}

# Corrections for city municipalities whose source budget figure is wrong.
BUDGET_OVERRIDES: dict[str, float] = {
    "เชียงใหม่": 1_755_970_000.0,
    "แหลมฉบัง": 1_423_500_000.0,
}

_SEPARATORS = re.compile(r"[\s,]")
_NON_NUMERIC = re.compile(r"[^0-9.]")


def _text(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ParseError("empty text")
    return text


def _finite(number: float, raw: Any) -> float:
    if math.isnan(number) or math.isinf(number):
        raise ParseError(f"non-finite number: {raw!r}")
    return number


def _number(value: Any) -> float:
    cleaned = _SEPARATORS.sub("", str(value))
    try:
        return _finite(float(cleaned), value)
    except ValueError as exc:
        raise ParseError(f"not a number: {value!r}") from exc


def _integer(value: Any) -> int:
    cleaned = _SEPARATORS.sub("", str(value))
    try:
        return int(cleaned)
    except ValueError:
        pass
    try:
        return int(_finite(float(cleaned), value))
    except ValueError as exc:
        raise ParseError(f"not an integer: {value!r}") from exc


def _stripped_number(value: Any) -> float:
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ParseError(f"no numeric content: {value!r}") from exc


@dataclass(frozen=True)
class FieldSpec:
    keys: tuple[str, ...]
    parse: Callable[[Any], Any]
    default: Any = None


FIELD_TABLE: dict[str, FieldSpec] = {
    "id": FieldSpec(("muni_code", "id"), _text),
    "name": FieldSpec(("name", "mun_name"), _text),
    "province": FieldSpec(("cwt_name", "province"), _text, UNKNOWN),
    "district": FieldSpec(("amp_name", "district"), _text, UNKNOWN),
    "type_label": FieldSpec(("type", "check-extracted-data - all-muni-nso-thai_type"), _text, DEFAULT_TYPE_LABEL),
    "budget_millions": FieldSpec(("1- clean-extracted_46_to_235_total",), _number),
    "population": FieldSpec(("1- clean-extracted_46_to_235_poppu", "population"), _integer),
    "area": FieldSpec(("1- clean-extracted_46_to_235_land-sque-km", "area"), _number),
    "self_collected": FieldSpec(("จัดเก็บเอง (ล้านบาท)",), _stripped_number, 0.0),
    "state_allocated": FieldSpec(("รัฐจัดสรร (ล้านบาท)",), _stripped_number, 0.0),
    "subsidies": FieldSpec(("เงินอุดหนุน (ล้านบาท)",), _stripped_number, 0.0),
}


def lookup_field(properties: Mapping[str, Any], field: str) -> Any:
    spec = FIELD_TABLE[field]
    for key in spec.keys:
        raw = properties.get(key)
        if raw is None:
            continue
        try:
            return spec.parse(raw)
        except ParseError as exc:
            log_event(
                logger,
                f"field {field} from key {key!r} unusable: {exc}",
                level=logging.DEBUG,
                stage="resolve",
                event="FIELD_UNPARSABLE",
                status="warn",
                error_code=exc.error_code,
            )
    return spec.default


def classify_type(type_label: str | None) -> str:
    label = (type_label or "").casefold()
    for municipality_type, tokens in TYPE_TOKENS:
        if any(token in label for token in tokens):
            return municipality_type
    return FALLBACK_TYPE


def default_budget(municipality_type: str) -> float:
    return DEFAULT_BUDGETS.get(municipality_type, DEFAULT_BUDGETS[FALLBACK_TYPE])


def _normalise_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def budget_override(name: str, municipality_type: str, overrides: Mapping[str, float]) -> float | None:
    if municipality_type != "city":
        return None
    normalised = _normalise_name(name)
    for fragment, budget in overrides.items():
        if _normalise_name(fragment) in normalised:
            return float(budget)
    return None


def resolve_budget(properties: Mapping[str, Any], name: str, municipality_type: str, overrides: Mapping[str, float]) -> float:
    override = budget_override(name, municipality_type, overrides)
    if override is not None:
        return override

    raw_millions = lookup_field(properties, "budget_millions")
    if raw_millions is not None and raw_millions > 0:
        # Source figures are in millions whatever their magnitude.
        budget = raw_millions * MILLION
        if math.isfinite(budget):
            return budget
    return default_budget(municipality_type)


def synthesize_budget_sources(budget: float, municipality_type: str) -> BudgetSources:
    self_pct, state_pct, subsidy_pct = BUDGET_SOURCE_SPLITS.get(municipality_type, BUDGET_SOURCE_SPLITS[FALLBACK_TYPE])
    budget_millions = budget / MILLION
    return BudgetSources(
        self_collected=budget_millions * self_pct,
        state_allocated=budget_millions * state_pct,
        subsidies=budget_millions * subsidy_pct,
    )


def resolve_budget_sources(properties: Mapping[str, Any], budget: float, municipality_type: str) -> BudgetSources:
    explicit = BudgetSources(
        self_collected=lookup_field(properties, "self_collected"),
        state_allocated=lookup_field(properties, "state_allocated"),
        subsidies=lookup_field(properties, "subsidies"),
    )
    if explicit.self_collected or explicit.state_allocated or explicit.subsidies:
        return explicit
    return synthesize_budget_sources(budget, municipality_type)


def resolve(properties: Mapping[str, Any] | None, *, overrides: Mapping[str, float] | None = None) -> MunicipalityRecord:
    """Derive a normalized municipality record from a feature's property bag.

    Never raises for malformed values: each field degrades to its default.
    """
    properties = properties if isinstance(properties, Mapping) else {}
    overrides = BUDGET_OVERRIDES if overrides is None else overrides

    digest = content_digest(properties)
    name = lookup_field(properties, "name") or f"{UNKNOWN}-{digest}"
    record_id = lookup_field(properties, "id") or f"muni-{name}-{digest}"
    type_label = lookup_field(properties, "type_label")
    municipality_type = classify_type(type_label)
    budget = resolve_budget(properties, name, municipality_type, overrides)

    return MunicipalityRecord(
        id=record_id,
        name=name,
        municipality_type=municipality_type,
        type_label=type_label,
        province=lookup_field(properties, "province"),
        district=lookup_field(properties, "district"),
        budget=budget,
        budget_sources=resolve_budget_sources(properties, budget, municipality_type),
        population=lookup_field(properties, "population"),
        area=lookup_field(properties, "area"),
    )

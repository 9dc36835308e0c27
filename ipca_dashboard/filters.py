from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from ipca_dashboard.records import CATEGORY_ALL, Record, classify
from ipca_dashboard.schemas import FilterCriteriaModel


logger = logging.getLogger(__name__)

_ALL_TOKENS = {"", "all", "todos", "todas", "none", "null"}


@dataclass(frozen=True)
class FilterCriteria:
    year: int = 0
    month: int = 0
    category: str = CATEGORY_ALL

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_CRITERIA


DEFAULT_CRITERIA = FilterCriteria()


def _loose(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        return None if s.lower() in _ALL_TOKENS else s.lower()
    return value


def normalize_criteria(raw: Optional[Mapping[str, Any]]) -> FilterCriteria:
    """Build criteria from loose UI values; invalid fields fall back to "all"."""
    cleaned: Dict[str, Any] = {}
    for key, value in (raw or {}).items():
        if key not in FilterCriteriaModel.model_fields:
            continue
        value = _loose(value)
        if value is not None:
            cleaned[key] = value

    try:
        model = FilterCriteriaModel.model_validate(cleaned)
    except ValidationError as exc:
        bad_fields = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
        logger.warning("Ignoring invalid filter values for %s: %s", sorted(bad_fields), cleaned)
        model = FilterCriteriaModel.model_validate({k: v for k, v in cleaned.items() if k not in bad_fields})

    return FilterCriteria(year=model.year, month=model.month, category=model.category)


def matches(record: Record, criteria: FilterCriteria) -> bool:
    if criteria.year and record.year != criteria.year:
        return False
    if criteria.month and record.month != criteria.month:
        return False
    if criteria.category != CATEGORY_ALL and classify(record) != criteria.category:
        return False
    return True


def filter_records(records: Sequence[Record], criteria: FilterCriteria = DEFAULT_CRITERIA) -> Tuple[Record, ...]:
    """Return the records matching every criterion, in their original order."""
    view = tuple(r for r in records if matches(r, criteria))
    logger.debug("Filtered %d -> %d records with %s", len(records), len(view), criteria)
    return view


def available_years(records: Iterable[Record]) -> List[int]:
    return sorted({r.year for r in records})

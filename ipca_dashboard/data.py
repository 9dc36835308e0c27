from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Tuple, Union

import requests

from ipca_dashboard.errors import DashboardError, FetchError, MalformedRowError
from ipca_dashboard.filters import DEFAULT_CRITERIA, FilterCriteria, available_years, filter_records, normalize_criteria
from ipca_dashboard.parser import ParseResult, parse_dataset
from ipca_dashboard.records import Record


logger = logging.getLogger(__name__)

PROJECT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_PATH = PROJECT_DIR / "data" / "data.csv"

DATA_ENV_VAR = "IPCA_DASHBOARD_DATA"
TIMEOUT_ENV_VAR = "IPCA_DASHBOARD_TIMEOUT"
DEFAULT_TIMEOUT = 10.0


def get_data_source() -> str:
    return os.environ.get(DATA_ENV_VAR) or str(DEFAULT_DATA_PATH)


def get_timeout() -> float:
    raw = os.environ.get(TIMEOUT_ENV_VAR)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %.0fs", TIMEOUT_ENV_VAR, raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def source_signature(source: str) -> Tuple[str, float]:
    """Cache key for a source: local files are keyed on their mtime too."""
    if is_url(source):
        return source, 0.0
    path = Path(source)
    try:
        return str(path.resolve()), path.stat().st_mtime
    except OSError:
        return str(path), 0.0


def fetch_dataset_text(source: str, timeout: Optional[float] = None) -> str:
    if is_url(source):
        try:
            resp = requests.get(source, timeout=timeout or get_timeout())
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(source, str(exc)) from exc
        try:
            return resp.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise FetchError(source, str(exc)) from exc

    try:
        return Path(source).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchError(source, str(exc)) from exc


@lru_cache(maxsize=4)
def _load_dataset_cached(files_sig: Tuple[str, float]) -> ParseResult:
    source, _ = files_sig
    return parse_dataset(fetch_dataset_text(source))


def load_dataset(source: Optional[str] = None) -> ParseResult:
    source = source or get_data_source()
    return _load_dataset_cached(source_signature(source))


def clear_cache() -> None:
    _load_dataset_cached.cache_clear()


# ---------------- Dataset store ----------------
@dataclass(frozen=True)
class DashboardState:
    records: Tuple[Record, ...]
    criteria: FilterCriteria = DEFAULT_CRITERIA
    view: Tuple[Record, ...] = ()
    dropped: Tuple[MalformedRowError, ...] = ()
    source: Optional[str] = None

    @property
    def years(self) -> List[int]:
        return available_years(self.records)


Listener = Callable[[DashboardState], None]


class DashboardController:
    """Single owner of the dashboard state.

    Every load, filter change or reset builds a new ``DashboardState`` and
    swaps it in with one assignment, then notifies subscribers. Readers holding
    an older state keep a complete, consistent snapshot.
    """

    def __init__(self) -> None:
        self._state: Optional[DashboardState] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> Optional[DashboardState]:
        return self._state

    @property
    def loaded(self) -> bool:
        return self._state is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self, source: Optional[str] = None) -> DashboardState:
        source = source or get_data_source()
        try:
            result = load_dataset(source)
        except DashboardError as exc:
            logger.error("Dataset load failed: %s", exc)
            raise
        return self._set_dataset(result, source)

    def load_text(self, text: str, source: Optional[str] = None) -> DashboardState:
        try:
            result = parse_dataset(text)
        except DashboardError as exc:
            logger.error("Dataset load failed: %s", exc)
            raise
        return self._set_dataset(result, source)

    def refresh(self) -> DashboardState:
        """Reload the current source if it changed on disk, keeping the filters.

        Unchanged sources hit the load cache and return the current state
        untouched. Text loaded with ``load_text`` has no source to re-read.
        """
        current = self._require_state()
        if current.source is None:
            return current
        try:
            result = load_dataset(current.source)
        except DashboardError as exc:
            logger.error("Dataset reload failed: %s", exc)
            raise
        if result.records is current.records and result.dropped is current.dropped:
            return current
        logger.info("Dataset source changed, reloading: %s", current.source)
        view = filter_records(result.records, current.criteria)
        return self._publish(replace(current, records=result.records, view=view, dropped=result.dropped))

    def apply(self, criteria: Union[FilterCriteria, Mapping[str, object]]) -> DashboardState:
        current = self._require_state()
        if not isinstance(criteria, FilterCriteria):
            criteria = normalize_criteria(criteria)
        view = filter_records(current.records, criteria)
        logger.info("Filters applied: year=%s month=%s category=%s -> %d records",
                    criteria.year or "all", criteria.month or "all", criteria.category, len(view))
        return self._publish(replace(current, criteria=criteria, view=view))

    def reset(self) -> DashboardState:
        current = self._require_state()
        logger.info("Filters reset")
        return self._publish(replace(current, criteria=DEFAULT_CRITERIA, view=current.records))

    def _set_dataset(self, result: ParseResult, source: Optional[str]) -> DashboardState:
        state = DashboardState(
            records=result.records,
            criteria=DEFAULT_CRITERIA,
            view=result.records,
            dropped=result.dropped,
            source=source,
        )
        logger.info("Dataset loaded: %d records (%d rows skipped)", len(result.records), len(result.dropped))
        return self._publish(state)

    def _require_state(self) -> DashboardState:
        if self._state is None:
            raise DashboardError("No dataset loaded")
        return self._state

    def _publish(self, state: DashboardState) -> DashboardState:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("View listener %r failed", listener)
        return state

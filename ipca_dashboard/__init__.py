"""Core (UI-agnostic) dashboard logic.

This package contains:
- dataset fetch + parsing (CSV text -> typed records)
- the historical / projection classifier
- filter normalization and the filter engine
- summary statistics (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict), table formatting and CSV export
"""

__version__ = "0.1.0"

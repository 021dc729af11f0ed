"""Core (UI-agnostic) release dashboard logic.

This package contains:
- data loading (CSV export -> pandas)
- filter normalization and selection state
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

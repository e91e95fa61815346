"""Core (UI-agnostic) medal dashboard logic.

This package contains:
- data loading (CSV -> pandas)
- aggregation for the overview, timeline and detail views
- shared selection state and the coordinator that keeps the views in sync
- chart helpers (Altair -> Vega-Lite spec dict)
"""

"""Core (UI-agnostic) discipline dashboard logic.

This package contains:
- data loading (CSV -> pandas) and the snapshot / trend / disparity pivots
- view filters and the group catalog
- view compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

"""Core (UI-agnostic) spreadsheet analytics logic.

This package contains:
- header row resolution and column type inference (raw 2D table -> typed rows)
- view parameter normalization (filters, axes, pagination)
- aggregation, descriptive statistics and highlight text
- chart helpers (grouped data -> chart payload, Altair -> Vega-Lite spec dict / PNG)
- the per-upload session, its debounced edits, CSV export and the upload fetch client
"""

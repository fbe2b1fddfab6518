"""
Core package for the county dashboard and the game score model comparison.

Submodules provide data fetching, parsing and derivation helpers plus the
user interface renderers orchestrated by the top-level `app.py`, and the
modeling helpers driven by `scripts/compare_models.py`.
"""

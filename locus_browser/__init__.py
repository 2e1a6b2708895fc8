"""
Top-level package for the locus browser.

This package exposes the core architecture (data pipeline, viewport engine,
plot/panel orchestration, UI adapters).
Most code should import from submodules such as:
    locus_browser.core
    locus_browser.data
    locus_browser.plot
    locus_browser.ui
"""

__all__: list[str] = []

"""
TALC package
============

This package contains the TALC Tourism Analyzer: destinations tagged with a
Tourism Area Life Cycle stage, filtered and projected onto a map and charts.

- The CLI entry point is in `talc/cli.py`.
- The view engine (filters, year slider, marker/chart sync) is in `talc/engine.py`.
- Dataset loading is in `talc/loader.py`.
"""

__version__ = '0.3.0'

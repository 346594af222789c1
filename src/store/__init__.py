"""Directory-backed column store.

This module maps (column, row) addresses onto cell files and exposes
restartable cursors, dataset handles, and the integrity gate.
"""

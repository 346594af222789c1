"""Streaming statistics engine.

This module computes column summaries and chart data through cursors
only, holding a bounded number of values in memory at any instant.
"""

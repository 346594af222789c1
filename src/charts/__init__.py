"""Terminal chart rendering.

This module turns statistics outputs into fixed-size character grids.
It never reads from the store except through bounded scatter samples.
"""

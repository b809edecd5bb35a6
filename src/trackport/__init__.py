"""
Trackport - conversation tracker import and NLU activity back-fill.
"""

__version__ = "0.1.0"

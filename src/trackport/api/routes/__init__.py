"""
API routes for Trackport.
"""

from trackport.api.routes import conversations, trackers

__all__ = ["conversations", "trackers"]

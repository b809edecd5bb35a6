"""
HTTP API for Trackport.
"""

"""
Database access layer.
"""

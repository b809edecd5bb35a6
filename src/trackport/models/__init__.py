"""
Database and tracker models.
"""

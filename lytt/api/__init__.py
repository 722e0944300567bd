"""
HTTP API for search, ask, rechunk and media management.
"""

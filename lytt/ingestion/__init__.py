"""
Ingestion: transcript loading, indexing, rechunking and export.
"""

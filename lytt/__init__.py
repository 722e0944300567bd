"""
Lytt: chunking and vector retrieval over video transcripts.
"""

__version__ = "0.1.0"

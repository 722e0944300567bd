"""
Token counting with tiktoken.
"""

from functools import lru_cache

import tiktoken

ENCODING_NAME = "cl100k_base"


@lru_cache
def get_encoding() -> tiktoken.Encoding:
    """Get cached tokenizer."""
    return tiktoken.get_encoding(ENCODING_NAME)


def count_tokens(text: str) -> int:
    """Count tokens in text using cl100k_base."""
    return len(get_encoding().encode(text))

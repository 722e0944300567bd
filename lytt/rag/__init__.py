"""
Retrieval-augmented generation: chunking, embeddings, storage and retrieval.
"""

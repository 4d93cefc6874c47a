"""
Boundary adapters: persistence, embeddings, vector and full-text indexes.
"""

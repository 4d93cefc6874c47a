"""
Work-note knowledge base: hybrid retrieval and embedding reliability.

Chunks work-note content, embeds it into a vector index, recovers from
embedding provider failures through a durable retry / dead-letter queue,
and fuses full-text and vector rankings with Reciprocal Rank Fusion.
"""

__version__ = "0.1.0"

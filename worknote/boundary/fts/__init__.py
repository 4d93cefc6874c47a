"""
Full-text search boundary layer.

Exports:
  - FullTextIndex: Lexical search protocol
  - SQLFullTextIndex: PostgreSQL / portable SQL implementation
"""

from worknote.boundary.fts.full_text_index import FullTextIndex
from worknote.boundary.fts.sql_full_text_index import SQLFullTextIndex

__all__ = ["FullTextIndex", "SQLFullTextIndex"]

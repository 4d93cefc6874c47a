"""
Sliding window text chunker.

Splits entity content into token-bounded, overlapping chunks and encodes
stable chunk identifiers. Token counts use a character approximation
(~4 characters per token), not a real tokenizer.

Dependencies: worknote.configs, worknote.models.chunk
System role: First stage of the embedding pipeline
"""

import math

from worknote.configs.chunking import ChunkingSettings
from worknote.core.exceptions import ChunkIdFormatError
from worknote.models.chunk import Chunk, ChunkMetadata

CHUNK_ID_MARKER = "#chunk"


def generate_chunk_id(entity_id: str, index: int) -> str:
    """
    Build the vector id of one chunk.

    Args:
        entity_id: Owning entity id
        index: 0-based chunk index

    Returns:
        str: "{entity_id}#chunk{index}"

    Raises:
        ChunkIdFormatError: Empty entity id or negative index
    """
    if not entity_id:
        raise ChunkIdFormatError(f"{entity_id}{CHUNK_ID_MARKER}{index}", "empty entity id")
    if index < 0:
        raise ChunkIdFormatError(f"{entity_id}{CHUNK_ID_MARKER}{index}", "negative index")
    return f"{entity_id}{CHUNK_ID_MARKER}{index}"


def parse_chunk_id(chunk_id: str) -> tuple[str, int]:
    """
    Split a chunk id back into (entity_id, index).

    Entity ids may contain '-' or even '#', so the split happens on the
    last '#chunk' marker.

    Raises:
        ChunkIdFormatError: Missing marker, empty entity id, or a suffix that
            is not a non-negative decimal integer
    """
    entity_id, marker, suffix = chunk_id.rpartition(CHUNK_ID_MARKER)
    if not marker:
        raise ChunkIdFormatError(chunk_id, "missing '#chunk' separator")
    if not entity_id:
        raise ChunkIdFormatError(chunk_id, "empty entity id")
    if not (suffix.isascii() and suffix.isdigit()):
        raise ChunkIdFormatError(chunk_id, "index is not a non-negative integer")
    return entity_id, int(suffix)


class TextChunker:
    """Sliding window chunker with configurable size and overlap."""

    def __init__(self, settings: ChunkingSettings | None = None) -> None:
        """
        Initialize chunker with window configuration.

        Args:
            settings: Chunking settings (defaults: 512 tokens, 20% overlap)
        """
        self._settings = settings or ChunkingSettings()
        self._window_chars = self._settings.chunk_size_tokens * self._settings.chars_per_token
        self._step_chars = max(1, math.floor(self._window_chars * (1 - self._settings.overlap_ratio)))
        self._min_chunk_chars = self._window_chars * self._settings.min_chunk_ratio

    @property
    def window_chars(self) -> int:
        """Window size in characters."""
        return self._window_chars

    @property
    def step_chars(self) -> int:
        """Distance between consecutive window starts in characters."""
        return self._step_chars

    def estimate_token_count(self, text: str) -> int:
        """Approximate token count: ceil(len / chars_per_token)."""
        return math.ceil(len(text) / self._settings.chars_per_token)

    @staticmethod
    def compose_full_text(title: str, text: str) -> str:
        """Title and body as they are chunked; just the title when the body is empty."""
        if not text:
            return title
        return f"{title}\n\n{text}"

    def chunk(
        self,
        entity_id: str,
        title: str,
        text: str,
        metadata: ChunkMetadata,
    ) -> list[Chunk]:
        """
        Split entity content into overlapping chunks.

        Always returns at least one chunk. Content that fits one window
        yields a single chunk with index 0; longer content is windowed and
        every chunk carries the same metadata.

        Args:
            entity_id: Owning entity id
            title: Entity title (included in the first chunk)
            text: Entity body
            metadata: Filter keys shared by all chunks

        Returns:
            list[Chunk]: Chunks with contiguous indices starting at 0
        """
        full_text = self.compose_full_text(title, text)

        if len(full_text) <= self._window_chars:
            return [self._build_chunk(entity_id, 0, full_text, metadata)]

        chunks: list[Chunk] = []
        start = 0
        while start < len(full_text):
            window = full_text[start : start + self._window_chars]

            # Skip very small trailing windows
            if start > 0 and len(window) < self._min_chunk_chars:
                break

            chunks.append(self._build_chunk(entity_id, len(chunks), window, metadata))

            if start + self._window_chars >= len(full_text):
                break
            start += self._step_chars

        return chunks

    def get_chunk_text(self, full_text: str, index: int) -> str:
        """
        Reconstruct the approximate text of chunk `index` for display.

        Args:
            full_text: Text exactly as passed through compose_full_text
            index: Chunk index

        Returns:
            str: Window slice, truncated with '...' beyond max_display_chars
        """
        start = index * self._step_chars
        chunk_text = full_text[start : start + self._window_chars]

        max_chars = self._settings.max_display_chars
        if len(chunk_text) > max_chars:
            return f"{chunk_text[: max_chars - 3]}..."
        return chunk_text

    def _build_chunk(
        self,
        entity_id: str,
        index: int,
        text: str,
        metadata: ChunkMetadata,
    ) -> Chunk:
        return Chunk(
            chunk_id=generate_chunk_id(entity_id, index),
            entity_id=entity_id,
            index=index,
            text=text,
            estimated_token_count=self.estimate_token_count(text),
            metadata=metadata,
        )

from __future__ import annotations

from typing import Iterator

# Coarsest boundary first. The cut lands after the separator so it stays with
# the earlier chunk.
SEPARATORS = ("\n\n", "\n", ". ", "! ", "? ", " ")


def _validate(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must be non-negative, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def _find_cut(text: str, start: int, limit: int, min_cut: int) -> int:
    window = text[start:limit]
    for separator in SEPARATORS:
        idx = window.rfind(separator)
        if idx < 0:
            continue
        cut = start + idx + len(separator)
        if cut >= min_cut:
            return cut
    return limit


class ChunkSequence:
    """Lazy, restartable view of the overlapping chunks of one text.

    Every chunk after the first starts exactly ``chunk_overlap`` characters
    before the end of the previous one, so ``chunks[0] + chunks[i][overlap:]``
    for the remaining chunks rebuilds the text.
    """

    def __init__(self, text: str, *, chunk_size: int, chunk_overlap: int):
        _validate(chunk_size, chunk_overlap)
        self.text = text
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def __iter__(self) -> Iterator[str]:
        text = self.text
        size = self.chunk_size
        overlap = self.chunk_overlap
        total = len(text)
        if total == 0:
            return

        start = 0
        while total - start > size:
            limit = start + size
            # a cut must leave the chunk at least half full and move past the overlap
            min_cut = start + max(overlap + 1, size // 2)
            cut = _find_cut(text, start, limit, min_cut)
            yield text[start:cut]
            start = cut - overlap
        yield text[start:]

    def to_list(self) -> list[str]:
        return list(self)


def chunk_text(text: str, *, chunk_size: int = 800, chunk_overlap: int = 200) -> ChunkSequence:
    return ChunkSequence(text, chunk_size=chunk_size, chunk_overlap=chunk_overlap)

from __future__ import annotations

from typing import Iterable, Sequence

from app.models.pipeline import AggregatedSource, SimilarityHit


def flatten_evidence(
    per_page: Sequence[Sequence[SimilarityHit | None] | None],
) -> list[SimilarityHit]:
    """Flatten per-page hit lists in page order, skipping missing groups and hits."""
    flattened: list[SimilarityHit] = []
    for group in per_page:
        if not group:
            continue
        flattened.extend(hit for hit in group if hit is not None)
    return flattened


def dedupe_sources(hits: Iterable[SimilarityHit]) -> list[AggregatedSource]:
    seen: set[str] = set()
    sources: list[AggregatedSource] = []
    for hit in hits:
        metadata = hit.metadata or {}
        url = metadata.get("url")
        if not url or url in seen:
            continue
        seen.add(url)
        sources.append(AggregatedSource(title=metadata.get("title") or "", url=url))
    return sources


def aggregate_sources(
    per_page: Sequence[Sequence[SimilarityHit | None] | None],
) -> list[AggregatedSource]:
    """Map every similarity hit to its page and keep the first hit per URL."""
    return dedupe_sources(flatten_evidence(per_page))

from __future__ import annotations

import asyncio

from loguru import logger

from app.errors import UpstreamProviderError
from app.models.pipeline import AnswerQuery, RetrievalResult, SearchHit, SimilarityHit
from app.services.embeddings import EmbeddingService
from app.services.page_index import MIN_PAGE_CHARS, PageIndex
from app.tools.chunker import chunk_text
from app.tools.content_extractor import extract_page
from app.tools.page_fetcher import PageFetcher
from app.tools.search_provider import WebSearchClient


def normalize_hits(hits: list[SearchHit], limit: int) -> list[SearchHit]:
    """Drop hits without a title or url and keep the first ``limit``."""
    valid = [hit for hit in hits if hit.title and hit.url]
    return valid[: max(limit, 0)]


class SourceRetriever:
    """Search, then fetch, chunk, embed and rank every result page concurrently.

    Flow per request:
      1. One search call with the raw query text
      2. Normalize hits (title + url required, truncate to pages-to-scan)
      3. Embed the query once
      4. Fan out: fetch -> extract -> length check -> chunk -> index -> rank, per page
      5. Fan in, keeping the search order
    """

    def __init__(
        self,
        *,
        search_client: WebSearchClient,
        fetcher: PageFetcher,
        embedder: EmbeddingService,
    ):
        self.search_client = search_client
        self.fetcher = fetcher
        self.embedder = embedder

    async def retrieve(self, query: AnswerQuery) -> RetrievalResult:
        try:
            response = await self.search_client.search(query.message)
        except UpstreamProviderError as e:
            logger.error(f"Search failed, continuing without evidence: {e}")
            return RetrievalResult(provider=e.provider, search_failed=True)
        hits = normalize_hits(response.results, query.number_of_pages_to_scan)
        logger.info(
            f"Search via {response.provider} returned {len(response.results)} results, "
            f"scanning {len(hits)}"
        )
        if not hits:
            return RetrievalResult(hits=[], per_page=[], provider=response.provider)

        query_vector = await self.embedder.embed_text(query.message)
        per_page = await asyncio.gather(
            *(self._process_page(hit, query, query_vector) for hit in hits)
        )
        return RetrievalResult(hits=hits, per_page=list(per_page), provider=response.provider)

    async def _process_page(
        self,
        hit: SearchHit,
        query: AnswerQuery,
        query_vector: list[float],
    ) -> list[SimilarityHit]:
        try:
            html = await self.fetcher.fetch(hit.url)
            page = extract_page(hit, html)
            if len(page.cleaned_text) < MIN_PAGE_CHARS:
                logger.debug(
                    f"Skipping {hit.url}: {len(page.cleaned_text)} chars of content"
                )
                return []

            chunks = chunk_text(
                page.cleaned_text,
                chunk_size=query.text_chunk_size,
                chunk_overlap=query.text_chunk_overlap,
            )
            index = await PageIndex.from_texts(
                chunks, {"title": page.title, "url": page.url}, self.embedder
            )
            results = index.similarity_search_by_vector(
                query_vector, query.number_of_similarity_results
            )
            logger.info(f"Indexed {len(index)} chunks for {hit.url}, kept {len(results)}")
            return results
        except Exception as e:
            logger.warning(f"Page pipeline failed for {hit.url}: {e}")
            return []

"""Semantic search over stored records by cosine similarity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from careerintel.interfaces.record_store import Document, IRecordStore
from careerintel.services.embedding_service import EmbeddingService, cosine_similarity
from careerintel.utils.logging import get_logger

DEFAULT_VECTOR = "combined"


@dataclass(frozen=True)
class ScoredRecord:
    """A stored document ranked against a query.  Vectors are stripped."""

    id: str
    similarity: float
    record: dict[str, Any]


def _strip_vectors(doc: Document) -> dict[str, Any]:
    return {k: v for k, v in doc.items() if k != "embeddings"}


class SemanticSearchService:
    """Embeds a query and ranks documents carrying the chosen vector.

    Records without that vector (unprocessed jobs, pending research units)
    are skipped rather than scored as zero.
    """

    def __init__(self, store: IRecordStore, embedding: EmbeddingService) -> None:
        self._store = store
        self._embedding = embedding
        self._logger = get_logger(__name__)

    async def search(
        self,
        collection: str,
        query: str,
        limit: int = 10,
        min_similarity: float = 0.0,
        vector: str = DEFAULT_VECTOR,
    ) -> list[ScoredRecord]:
        """Return up to *limit* records most similar to *query*, best first.

        Parameters
        ----------
        collection:
            Collection to scan.
        query:
            Free-text search query.
        limit:
            Maximum number of results.
        min_similarity:
            Records scoring below this are dropped.
        vector:
            Named embedding view to compare against.
        """
        query_vector = await self._embedding.embed(query)
        candidates = await self._store.query_by_filter(
            collection,
            lambda doc: bool((doc.get("embeddings") or {}).get(vector)),
        )

        scored = []
        for doc in candidates:
            similarity = cosine_similarity(query_vector, doc["embeddings"][vector])
            if similarity >= min_similarity:
                scored.append(ScoredRecord(id=doc["id"], similarity=similarity, record=_strip_vectors(doc)))

        scored.sort(key=lambda item: item.similarity, reverse=True)
        self._logger.info(
            "semantic_search_complete",
            collection=collection,
            scanned=len(candidates),
            matched=len(scored),
            limit=limit,
        )
        return scored[:limit]

"""Background enrichment of result records, decoupled from the request path.

# ─── HOW A BATCH RUNS ─────────────────────────────────────────────────
#
#   run_batch(n)
#     1. requeue records stuck in "processing" past the claim lease
#     2. select up to n unprocessed records that carry a raw payload,
#        least recently touched first, so a record that just failed goes
#        behind the ones that have not been tried yet
#     3. claim each one with a compare-and-swap
#            expected {processing_state: unprocessed}
#            partial  {processing_state: processing}
#        A lost claim means another tick got there first; it is skipped.
#     4. process the claimed records, at most `concurrency` in flight:
#            success -> processed + enriched payload + embeddings
#            failure -> unprocessed + processing_error  (retried next tick)
#
#   refresh_stale(n, max_age)
#     selects by updated_at age instead of processing state and resets
#     records to unprocessed, so the next run_batch re-enriches them.
#     This is the only path that re-processes a processed record.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

from careerintel.interfaces.record_store import Document, IRecordStore
from careerintel.models.lifecycle import BatchSummary, ProcessingState, StaleStats
from careerintel.pipeline.domains import promoted_job_fields
from careerintel.services.embedding_service import (
    EmbeddingService,
    build_job_views,
    build_profile_text,
    prepare_text_for_embedding,
)
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.utils.clock import Clock, now_ms, to_ms
from careerintel.utils.concurrency import bounded_map
from careerintel.utils.errors import CareerIntelError, RecordBusyError
from careerintel.utils.logging import get_logger

DEFAULT_CONCURRENCY = 3
# A claim older than this is treated as abandoned (worker crashed).
DEFAULT_CLAIM_LEASE = timedelta(minutes=10)

_MONTH = timedelta(days=30)
_RECENT = timedelta(hours=24)


# ---------------------------------------------------------------------------
# Record processors
# ---------------------------------------------------------------------------


class RecordProcessor(ABC):
    """Turns one claimed record into the patch that marks it processed."""

    @abstractmethod
    async def process(self, record: Document) -> dict[str, Any]:
        """Enrich and embed *record*.  Errors propagate to the scheduler."""

    @abstractmethod
    def label(self, record: Document) -> str:
        """Short human-readable name for log lines."""


class JobRecordProcessor(RecordProcessor):
    def __init__(self, enrichment: EnrichmentService, embedding: EmbeddingService) -> None:
        self._enrichment = enrichment
        self._embedding = embedding

    async def process(self, record: Document) -> dict[str, Any]:
        job = await self._enrichment.enrich("job", record["raw_payload"])
        views = build_job_views(job)
        vectors = await self._embedding.embed_views(views)
        return {
            "enriched_payload": job.model_dump(),
            "embeddings": vectors,
            "embedding_text": prepare_text_for_embedding(views["combined"]),
            **promoted_job_fields(job),
        }

    def label(self, record: Document) -> str:
        return f"{record.get('title')} at {record.get('company_name')}"


class ProfileRecordProcessor(RecordProcessor):
    def __init__(self, enrichment: EnrichmentService, embedding: EmbeddingService) -> None:
        self._enrichment = enrichment
        self._embedding = embedding

    async def process(self, record: Document) -> dict[str, Any]:
        profile = await self._enrichment.enrich("profile", record["raw_payload"])
        text = build_profile_text(profile)
        vector = await self._embedding.embed(text)
        return {
            "enriched_payload": profile.model_dump(),
            "embeddings": {"combined": vector},
            "embedding_text": prepare_text_for_embedding(text),
            "position": record.get("position") or profile.position,
            "profile_location": record.get("profile_location") or profile.location,
        }

    def label(self, record: Document) -> str:
        return f"{record.get('author')} ({record.get('url')})"


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


def _is_unprocessed(doc: Document) -> bool:
    return doc.get("processing_state") == ProcessingState.UNPROCESSED.value and doc.get("raw_payload") is not None


class EnrichmentScheduler:
    """Advances one record collection from unprocessed to processed.

    Parameters
    ----------
    store:
        Record store.
    collection:
        Record collection this scheduler owns (``jobs`` or ``profiles``).
    processor:
        Domain-specific enrichment and embedding step.
    concurrency:
        Maximum records processed at once within a batch.
    clock:
        Epoch-millisecond clock.
    claim_lease:
        Age after which a ``processing`` claim is considered abandoned.
    """

    def __init__(
        self,
        store: IRecordStore,
        collection: str,
        processor: RecordProcessor,
        concurrency: int = DEFAULT_CONCURRENCY,
        clock: Clock = now_ms,
        claim_lease: timedelta = DEFAULT_CLAIM_LEASE,
    ) -> None:
        self._store = store
        self._collection = collection
        self._processor = processor
        self._concurrency = max(1, concurrency)
        self._clock = clock
        self._claim_lease = claim_lease
        self._logger = get_logger(__name__)

    @property
    def collection(self) -> str:
        return self._collection

    # ------------------------------------------------------------------
    # process-unprocessed
    # ------------------------------------------------------------------

    async def run_batch(self, batch_size: int) -> BatchSummary:
        """Enrich up to *batch_size* unprocessed records, least recently touched first.

        Returns
        -------
        BatchSummary
            ``selected`` records matched the query, ``claimed`` won the
            compare-and-swap, and each claimed record ends ``processed`` or
            ``failed``.  Lost claims are ``skipped``.
        """
        operation = f"{self._collection}:process-unprocessed"
        await self.requeue_abandoned()

        selected = await self._store.query_by_filter(
            self._collection, _is_unprocessed, limit=batch_size, order_by="updated_at"
        )
        if not selected:
            self._logger.info("batch_empty", operation=operation)
            return BatchSummary(operation=operation)

        claimed: list[Document] = []
        for record in selected:
            won = await self._store.conditional_patch(
                self._collection,
                record["id"],
                expected={"processing_state": ProcessingState.UNPROCESSED.value},
                partial={"processing_state": ProcessingState.PROCESSING.value, "processing_started_at": self._clock()},
            )
            if won:
                claimed.append(record)
            else:
                self._logger.debug("claim_lost", operation=operation, record_id=record["id"])

        outcomes = await bounded_map(self._process_one, claimed, self._concurrency)
        processed = sum(1 for outcome in outcomes if outcome is True)
        summary = BatchSummary(
            operation=operation,
            selected=len(selected),
            claimed=len(claimed),
            processed=processed,
            failed=len(claimed) - processed,
            skipped=len(selected) - len(claimed),
        )
        self._logger.info(
            "batch_complete",
            operation=operation,
            selected=summary.selected,
            processed=summary.processed,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

    async def requeue_abandoned(self) -> int:
        """Reset claims older than the lease back to unprocessed."""
        cutoff = self._clock() - to_ms(self._claim_lease)

        def abandoned(doc: Document) -> bool:
            started = doc.get("processing_started_at")
            return (
                doc.get("processing_state") == ProcessingState.PROCESSING.value
                and started is not None
                and started < cutoff
            )

        requeued = 0
        for record in await self._store.query_by_filter(self._collection, abandoned):
            requeued += int(
                await self._store.conditional_patch(
                    self._collection,
                    record["id"],
                    expected={
                        "processing_state": ProcessingState.PROCESSING.value,
                        "processing_started_at": record["processing_started_at"],
                    },
                    partial={
                        "processing_state": ProcessingState.UNPROCESSED.value,
                        "processing_error": "processing claim expired",
                    },
                )
            )
        if requeued:
            self._logger.warning("abandoned_claims_requeued", collection=self._collection, count=requeued)
        return requeued

    async def _process_one(self, record: Document) -> bool:
        label = self._processor.label(record)
        try:
            patch = await self._processor.process(record)
            patch.update(
                {
                    "processing_state": ProcessingState.PROCESSED.value,
                    "processing_error": None,
                    "processed_at": self._clock(),
                }
            )
            await self._store.patch(self._collection, record["id"], patch)
        except Exception as exc:
            self._logger.warning(
                "record_processing_failed",
                collection=self._collection,
                record_id=record["id"],
                record=label,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await self._rollback(record["id"], str(exc) or type(exc).__name__)
            return False

        self._logger.info("record_processed", collection=self._collection, record_id=record["id"], record=label)
        return True

    async def _rollback(self, record_id: str, error: str) -> None:
        try:
            await self._store.patch(
                self._collection,
                record_id,
                {"processing_state": ProcessingState.UNPROCESSED.value, "processing_error": error},
            )
        except CareerIntelError as exc:
            self._logger.error("record_rollback_failed", collection=self._collection, record_id=record_id, error=str(exc))

    # ------------------------------------------------------------------
    # refresh-stale
    # ------------------------------------------------------------------

    async def refresh_stale(self, batch_size: int, max_age: timedelta) -> BatchSummary:
        """Mark up to *batch_size* records untouched for *max_age* for re-enrichment.

        Records currently being processed are left alone.  A record that
        cannot be reset gets ``stale_update_error`` and counts as failed.
        """
        operation = f"{self._collection}:refresh-stale"
        cutoff = self._clock() - to_ms(max_age)
        selected = await self._store.query_by_filter(
            self._collection,
            lambda doc: doc.get("updated_at", 0) < cutoff
            and doc.get("processing_state") != ProcessingState.PROCESSING.value,
            limit=batch_size,
            order_by="updated_at",
        )
        if not selected:
            self._logger.info("batch_empty", operation=operation)
            return BatchSummary(operation=operation)

        refreshed = failed = skipped = 0
        for record in selected:
            now = self._clock()
            try:
                applied = await self._store.conditional_patch(
                    self._collection,
                    record["id"],
                    expected={"updated_at": record["updated_at"]},
                    partial={
                        "processing_state": ProcessingState.UNPROCESSED.value,
                        "stale_update_processed_at": now,
                        "stale_update_error": None,
                    },
                )
            except CareerIntelError as exc:
                failed += 1
                self._logger.warning("stale_refresh_failed", collection=self._collection, record_id=record["id"], error=str(exc))
                await self._record_stale_error(record["id"], str(exc))
                continue
            if applied:
                refreshed += 1
            else:
                skipped += 1

        summary = BatchSummary(
            operation=operation,
            selected=len(selected),
            claimed=refreshed + failed,
            processed=refreshed,
            failed=failed,
            skipped=skipped,
        )
        self._logger.info("stale_refresh_complete", operation=operation, refreshed=refreshed, failed=failed)
        return summary

    async def _record_stale_error(self, record_id: str, error: str) -> None:
        try:
            await self._store.patch(self._collection, record_id, {"stale_update_error": error})
        except CareerIntelError as exc:
            self._logger.error("stale_error_write_failed", collection=self._collection, record_id=record_id, error=str(exc))

    async def mark_for_refresh(self, record_id: str) -> bool:
        """Reset one record to unprocessed.  Returns False if it does not exist.

        Raises
        ------
        RecordBusyError
            If the record is claimed by a batch, or gets claimed while the
            reset is being applied.
        """
        record = await self._store.get(self._collection, record_id)
        if record is None:
            return False
        state = record.get("processing_state")
        if state == ProcessingState.PROCESSING.value:
            raise RecordBusyError(message=f"Record {record_id} is being processed")
        applied = await self._store.conditional_patch(
            self._collection,
            record_id,
            expected={"processing_state": state},
            partial={"processing_state": ProcessingState.UNPROCESSED.value, "processing_error": None},
        )
        if not applied:
            self._logger.info("refresh_lost_to_claim", collection=self._collection, record_id=record_id)
            raise RecordBusyError(message=f"Record {record_id} is being processed")
        self._logger.info("record_marked_for_refresh", collection=self._collection, record_id=record_id)
        return True

    async def stale_stats(self, now: float | None = None) -> StaleStats:
        """Count records by age of their last update."""
        now = self._clock() if now is None else now
        records = await self._store.query_by_filter(self._collection, lambda doc: True)

        def older_than(doc: Document, months: int) -> bool:
            return doc.get("updated_at", now) < now - to_ms(_MONTH * months)

        stale_3 = sum(1 for doc in records if older_than(doc, 3))
        return StaleStats(
            total=len(records),
            fresh=len(records) - stale_3,
            stale_3_months=stale_3,
            stale_6_months=sum(1 for doc in records if older_than(doc, 6)),
            stale_1_year=sum(1 for doc in records if older_than(doc, 12)),
            recently_processed=sum(
                1 for doc in records if (doc.get("stale_update_processed_at") or 0) > now - to_ms(_RECENT)
            ),
            with_errors=sum(1 for doc in records if doc.get("stale_update_error")),
        )

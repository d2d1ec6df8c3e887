"""Unit tests for the enrichment scheduler and record processors."""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from careerintel.interfaces.record_store import JOBS, PROFILES, Document
from careerintel.pipeline.domains import build_job_record, build_profile_record
from careerintel.pipeline.scheduler import (
    EnrichmentScheduler,
    JobRecordProcessor,
    ProfileRecordProcessor,
    RecordProcessor,
)
from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.services.embedding_service import EmbeddingService
from careerintel.services.enrichment_service import EnrichmentService
from careerintel.utils.clock import ManualClock, to_ms
from careerintel.utils.errors import EnrichmentError, RecordBusyError

from conftest import raw_job, raw_profile, structured_profile_payload


class FakeProcessor(RecordProcessor):
    """Returns a fixed patch; fails for any record id in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.seen: list[str] = []

    async def process(self, record: Document) -> dict[str, Any]:
        self.seen.append(record["id"])
        if record["dedup_identity"] in self.failing:
            raise EnrichmentError(message="LLM returned garbage")
        return {"enriched_payload": {"title": record["title"]}, "embeddings": {"combined": [1.0]}}

    def label(self, record: Document) -> str:
        return record["title"]


class RacingStore(InMemoryRecordStore):
    """A store where another worker claims ``contested`` just before us."""

    def __init__(self, clock: ManualClock, contested: str) -> None:
        super().__init__(clock=clock)
        self.contested = contested

    async def conditional_patch(self, collection: str, doc_id: str, expected: Document, partial: Document) -> bool:
        if doc_id == self.contested and partial.get("processing_state") == "processing":
            await self.patch(collection, doc_id, {"processing_state": "processing", "processing_started_at": 0})
        return await super().conditional_patch(collection, doc_id, expected, partial)


async def _seed_jobs(store: InMemoryRecordStore, clock: ManualClock, count: int) -> list[str]:
    ids = []
    for i in range(count):
        doc = build_job_record(raw_job(f"job-{i}"), "gb")
        doc.update(
            {
                "search_id": "unit-1",
                "processing_state": "unprocessed",
                "processing_error": None,
                "enriched_payload": None,
                "embeddings": {},
            }
        )
        ids.append(await store.create(JOBS, doc))
        clock.advance(timedelta(seconds=1))
    return ids


async def _states(store: InMemoryRecordStore) -> list[str]:
    return [doc["processing_state"] for doc in await store.query_by_filter(JOBS, lambda doc: True)]


# ======================================================================
# run_batch
# ======================================================================


class TestRunBatch:
    @pytest.mark.asyncio
    async def test_processes_exactly_batch_size(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        await _seed_jobs(store, clock, 5)
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        summary = await scheduler.run_batch(2)

        assert summary.selected == 2
        assert summary.processed == 2
        states = await _states(store)
        assert states.count("processed") == 2
        assert states.count("unprocessed") == 3

    @pytest.mark.asyncio
    async def test_oldest_records_go_first(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        ids = await _seed_jobs(store, clock, 4)
        processor = FakeProcessor()
        scheduler = EnrichmentScheduler(store, JOBS, processor, clock=clock)

        await scheduler.run_batch(2)

        assert sorted(processor.seen) == sorted(ids[:2])

    @pytest.mark.asyncio
    async def test_processed_record_carries_payload_and_timestamp(
        self, store: InMemoryRecordStore, clock: ManualClock
    ) -> None:
        [record_id] = await _seed_jobs(store, clock, 1)
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        await scheduler.run_batch(5)

        record = await store.get(JOBS, record_id)
        assert record["processing_state"] == "processed"
        assert record["enriched_payload"] == {"title": "Python Developer"}
        assert record["processed_at"] == clock()
        assert record["processing_error"] is None

    @pytest.mark.asyncio
    async def test_failure_rolls_back_with_error(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        ids = await _seed_jobs(store, clock, 3)
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(failing={"job-1"}), clock=clock)

        summary = await scheduler.run_batch(3)

        assert summary.processed == 2
        assert summary.failed == 1
        failed = await store.get(JOBS, ids[1])
        assert failed["processing_state"] == "unprocessed"
        assert failed["processing_error"] == "LLM returned garbage"
        assert failed["enriched_payload"] is None

    @pytest.mark.asyncio
    async def test_failed_record_is_retried_next_tick(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        await _seed_jobs(store, clock, 1)
        processor = FakeProcessor(failing={"job-0"})
        scheduler = EnrichmentScheduler(store, JOBS, processor, clock=clock)

        await scheduler.run_batch(1)
        processor.failing.clear()
        summary = await scheduler.run_batch(1)

        assert summary.processed == 1
        assert await _states(store) == ["processed"]

    @pytest.mark.asyncio
    async def test_failing_records_do_not_starve_the_queue(
        self, store: InMemoryRecordStore, clock: ManualClock
    ) -> None:
        ids = await _seed_jobs(store, clock, 3)
        processor = FakeProcessor(failing={"job-0", "job-1"})
        scheduler = EnrichmentScheduler(store, JOBS, processor, clock=clock)

        first = await scheduler.run_batch(2)
        clock.advance(timedelta(minutes=10))
        second = await scheduler.run_batch(2)

        assert first.failed == 2
        assert processor.seen[:2] == ids[:2]
        assert processor.seen[2] == ids[2]
        assert second.processed == 1
        record = await store.get(JOBS, ids[2])
        assert record["processing_state"] == "processed"

    @pytest.mark.asyncio
    async def test_lost_claim_is_skipped(self, clock: ManualClock) -> None:
        store = RacingStore(clock, contested="")
        ids = await _seed_jobs(store, clock, 2)
        store.contested = ids[0]
        processor = FakeProcessor()
        scheduler = EnrichmentScheduler(store, JOBS, processor, clock=clock)

        summary = await scheduler.run_batch(2)

        assert summary.claimed == 1
        assert summary.skipped == 1
        assert processor.seen == [ids[1]]

    @pytest.mark.asyncio
    async def test_empty_batch_is_a_no_op(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        summary = await scheduler.run_batch(10)

        assert summary.selected == 0
        assert summary.message == "jobs:process-unprocessed: nothing to do"

    @pytest.mark.asyncio
    async def test_records_without_raw_payload_are_ignored(
        self, store: InMemoryRecordStore, clock: ManualClock
    ) -> None:
        await store.create(JOBS, {"dedup_identity": "x", "provider": "serpapi", "title": "x", "processing_state": "unprocessed"})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        summary = await scheduler.run_batch(10)

        assert summary.selected == 0


class TestAbandonedClaims:
    @pytest.mark.asyncio
    async def test_claim_past_lease_is_requeued(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        [record_id] = await _seed_jobs(store, clock, 1)
        await store.patch(JOBS, record_id, {"processing_state": "processing", "processing_started_at": clock()})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        clock.advance(timedelta(minutes=11))
        requeued = await scheduler.requeue_abandoned()

        assert requeued == 1
        record = await store.get(JOBS, record_id)
        assert record["processing_state"] == "unprocessed"
        assert record["processing_error"] == "processing claim expired"

    @pytest.mark.asyncio
    async def test_recent_claim_is_left_alone(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        [record_id] = await _seed_jobs(store, clock, 1)
        await store.patch(JOBS, record_id, {"processing_state": "processing", "processing_started_at": clock()})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        clock.advance(timedelta(minutes=2))
        summary = await scheduler.run_batch(5)

        assert summary.selected == 0
        assert (await store.get(JOBS, record_id))["processing_state"] == "processing"


# ======================================================================
# refresh-stale and stats
# ======================================================================


class TestRefreshStale:
    @pytest.mark.asyncio
    async def test_old_processed_records_are_reset(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        old_id = await store.create(JOBS, {"title": "old", "processing_state": "processed"})
        clock.advance(timedelta(days=40))
        new_id = await store.create(JOBS, {"title": "new", "processing_state": "processed"})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        summary = await scheduler.refresh_stale(10, timedelta(days=30))

        assert summary.processed == 1
        old = await store.get(JOBS, old_id)
        assert old["processing_state"] == "unprocessed"
        assert old["stale_update_processed_at"] == clock()
        assert old["stale_update_error"] is None
        assert (await store.get(JOBS, new_id))["processing_state"] == "processed"

    @pytest.mark.asyncio
    async def test_records_in_flight_are_not_reset(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        await store.create(JOBS, {"title": "busy", "processing_state": "processing"})
        clock.advance(timedelta(days=40))
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        summary = await scheduler.refresh_stale(10, timedelta(days=30))

        assert summary.selected == 0

    @pytest.mark.asyncio
    async def test_mark_for_refresh(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        record_id = await store.create(JOBS, {"title": "x", "processing_state": "processed", "processing_error": "old"})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        assert await scheduler.mark_for_refresh(record_id) is True
        assert await scheduler.mark_for_refresh("missing") is False
        record = await store.get(JOBS, record_id)
        assert record["processing_state"] == "unprocessed"
        assert record["processing_error"] is None

    @pytest.mark.asyncio
    async def test_mark_for_refresh_refuses_record_in_flight(
        self, store: InMemoryRecordStore, clock: ManualClock
    ) -> None:
        record_id = await store.create(
            JOBS,
            {"title": "x", "raw_payload": {"t": 1}, "processing_state": "processing", "processing_started_at": clock()},
        )
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)

        with pytest.raises(RecordBusyError):
            await scheduler.mark_for_refresh(record_id)

        assert (await store.get(JOBS, record_id))["processing_state"] == "processing"
        assert (await scheduler.run_batch(5)).selected == 0

    @pytest.mark.asyncio
    async def test_mark_for_refresh_loses_to_concurrent_claim(
        self, store: InMemoryRecordStore, clock: ManualClock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        record_id = await store.create(JOBS, {"title": "x", "processing_state": "processed"})
        scheduler = EnrichmentScheduler(store, JOBS, FakeProcessor(), clock=clock)
        original = store.get

        async def claim_after_read(collection: str, doc_id: str) -> Document | None:
            record = await original(collection, doc_id)
            await store.patch(collection, doc_id, {"processing_state": "processing"})
            return record

        monkeypatch.setattr(store, "get", claim_after_read)

        with pytest.raises(RecordBusyError):
            await scheduler.mark_for_refresh(record_id)

        assert (await original(JOBS, record_id))["processing_state"] == "processing"


class TestStaleStats:
    @pytest.mark.asyncio
    async def test_age_buckets(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        now = clock()
        day = to_ms(timedelta(days=1))
        await store.create(PROFILES, {"updated_at": now - 10 * day})
        await store.create(PROFILES, {"updated_at": now - 100 * day, "stale_update_error": "boom"})
        await store.create(PROFILES, {"updated_at": now - 200 * day})
        await store.create(PROFILES, {"updated_at": now - 400 * day, "stale_update_processed_at": now - 3_600_000})
        scheduler = EnrichmentScheduler(store, PROFILES, FakeProcessor(), clock=clock)

        stats = await scheduler.stale_stats()

        assert stats.total == 4
        assert stats.fresh == 1
        assert stats.stale_3_months == 3
        assert stats.stale_6_months == 2
        assert stats.stale_1_year == 1
        assert stats.recently_processed == 1
        assert stats.with_errors == 1
        assert stats.percentages["fresh"] == 25

    @pytest.mark.asyncio
    async def test_empty_collection(self, store: InMemoryRecordStore, clock: ManualClock) -> None:
        scheduler = EnrichmentScheduler(store, PROFILES, FakeProcessor(), clock=clock)

        stats = await scheduler.stale_stats()

        assert stats.total == 0
        assert stats.percentages["fresh"] == 0


# ======================================================================
# Domain processors
# ======================================================================


class TestJobRecordProcessor:
    @pytest.mark.asyncio
    async def test_enriches_embeds_and_promotes(
        self, mock_llm: MagicMock, embedding_service: EmbeddingService, clock: ManualClock
    ) -> None:
        processor = JobRecordProcessor(EnrichmentService(mock_llm, clock=clock), embedding_service)
        record = build_job_record(raw_job("job-9"), "gb")

        patch = await processor.process(record)

        assert patch["enriched_payload"]["title"] == "Senior Python Developer"
        assert patch["enriched_payload"]["source_url"] == "https://jobs.example.com/job-9"
        assert set(patch["embeddings"]) == {"title", "description", "combined"}
        assert patch["experience_level"] == "Senior"
        assert patch["industry"] == "Fintech"
        assert patch["work_arrangement"] == "Hybrid"
        assert "Senior Python Developer" in patch["embedding_text"]

    @pytest.mark.asyncio
    async def test_enrichment_error_propagates(
        self, mock_llm: MagicMock, embedding_service: EmbeddingService, store: InMemoryRecordStore, clock: ManualClock
    ) -> None:
        mock_llm.extract_structured = AsyncMock(return_value={"title": "missing everything"})
        scheduler = EnrichmentScheduler(
            store, JOBS, JobRecordProcessor(EnrichmentService(mock_llm, clock=clock), embedding_service), clock=clock
        )
        [record_id] = await _seed_jobs(store, clock, 1)

        summary = await scheduler.run_batch(1)

        assert summary.failed == 1
        record = await store.get(JOBS, record_id)
        assert "failed validation" in record["processing_error"]


class TestProfileRecordProcessor:
    @pytest.mark.asyncio
    async def test_keeps_text_derived_fields(
        self, mock_llm: MagicMock, embedding_service: EmbeddingService, clock: ManualClock
    ) -> None:
        mock_llm.extract_structured = AsyncMock(return_value=structured_profile_payload(position="Designer"))
        processor = ProfileRecordProcessor(EnrichmentService(mock_llm, clock=clock), embedding_service)
        record = build_profile_record(raw_profile(), "Manchester", "exa")

        patch = await processor.process(record)

        assert patch["position"] == "Head of Design"
        assert patch["profile_location"] == "Manchester, UK"
        assert patch["enriched_payload"]["profile_url"] == "https://linkedin.com/in/p-1"
        assert list(patch["embeddings"]) == ["combined"]

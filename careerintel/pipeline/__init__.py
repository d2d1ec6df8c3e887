"""Search-unit lifecycle, background tasks, and enrichment scheduling for career-intel."""

from careerintel.pipeline.lifecycle import DomainDescriptor, FetchOutcome, LifecycleManager
from careerintel.pipeline.periodic import PeriodicJob, PeriodicRunner, build_periodic_jobs
from careerintel.pipeline.scheduler import (
    EnrichmentScheduler,
    JobRecordProcessor,
    ProfileRecordProcessor,
    RecordProcessor,
)
from careerintel.pipeline.task_runner import TaskHandle, TaskRunner

__all__ = [
    "DomainDescriptor",
    "EnrichmentScheduler",
    "FetchOutcome",
    "JobRecordProcessor",
    "LifecycleManager",
    "PeriodicJob",
    "PeriodicRunner",
    "ProfileRecordProcessor",
    "RecordProcessor",
    "TaskHandle",
    "TaskRunner",
    "build_periodic_jobs",
]

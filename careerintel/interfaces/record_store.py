"""Abstract base class for the document record store.

Every persistent read and write in career-intel goes through
:class:`IRecordStore`, one method per operation.  Documents are plain JSON
dicts; the store owns ``id``, ``created_at`` and ``updated_at`` (epoch
milliseconds).  Only single-document writes exist.  There are no
multi-document transactions, so callers tolerate sibling writes becoming
visible in any order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Literal

Document = dict[str, Any]
Predicate = Callable[[Document], bool]
SortOrder = Literal["asc", "desc"]

# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

RESEARCH_REPORTS = "research_reports"
PROFILE_SEARCHES = "profile_searches"
PROFILES = "profiles"
JOB_SEARCHES = "job_searches"
JOBS = "jobs"

# Declared lookup indexes per collection.  Each tuple is one (possibly
# compound) index; the SQLite adapter turns them into json_extract
# expression indexes, the in-memory adapter ignores them.
COLLECTION_INDEXES: dict[str, tuple[tuple[str, ...], ...]] = {
    RESEARCH_REPORTS: (
        ("company", "position", "location", "type"),
        ("status",),
        ("created_at",),
        ("updated_at",),
    ),
    PROFILE_SEARCHES: (
        ("job_title", "user_location", "num_results"),
        ("status",),
        ("created_at",),
    ),
    PROFILES: (
        ("dedup_identity", "provider"),
        ("search_id",),
        ("processing_state",),
        ("updated_at",),
    ),
    JOB_SEARCHES: (
        ("query", "location", "country_code", "num_results"),
        ("status",),
        ("created_at",),
    ),
    JOBS: (
        ("dedup_identity", "provider", "country_code"),
        ("search_id",),
        ("share_link",),
        ("processing_state",),
        ("updated_at",),
    ),
}


# Concrete implementations: InMemoryRecordStore, SQLiteRecordStore
# Located in: careerintel/providers/store/
class IRecordStore(ABC):
    """Contract for the typed CRUD/query facade over the document store."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backing storage (tables, indexes).  Idempotent."""

    @abstractmethod
    async def create(self, collection: str, doc: Document) -> str:
        """Insert *doc* into *collection* and return its new id.

        Parameters
        ----------
        collection:
            Target collection name.
        doc:
            Document body.  ``created_at``/``updated_at`` are stamped with
            the store clock when absent; any ``id`` key is ignored.

        Returns
        -------
        str
            The opaque identifier assigned to the document.
        """

    @abstractmethod
    async def patch(self, collection: str, doc_id: str, partial: Document) -> None:
        """Shallow-merge *partial* into an existing document.

        ``updated_at`` is bumped on every patch unless *partial* sets it.

        Raises
        ------
        careerintel.utils.errors.RecordNotFoundError
            If no document with *doc_id* exists.
        """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Return the document with *doc_id*, or ``None``."""

    @abstractmethod
    async def query_by_index(
        self,
        collection: str,
        fields: tuple[str, ...] | list[str],
        values: tuple[Any, ...] | list[Any],
        order: SortOrder = "desc",
        limit: int | None = None,
    ) -> list[Document]:
        """Return documents where every field equals its paired value.

        Parameters
        ----------
        collection:
            Collection to search.
        fields:
            Field names, normally one of the declared indexes.
        values:
            Equality values positionally matching *fields*.
        order:
            Sort direction on ``created_at``; ``"desc"`` returns the most
            recent first.
        limit:
            Maximum number of documents; ``None`` for all.
        """

    @abstractmethod
    async def query_by_filter(
        self,
        collection: str,
        predicate: Predicate,
        limit: int | None = None,
        order_by: str = "created_at",
        order: SortOrder = "asc",
    ) -> list[Document]:
        """Scan *collection* and return documents satisfying *predicate*.

        The default ordering is oldest-first so batch consumers do not
        starve old records.
        """

    @abstractmethod
    async def conditional_patch(
        self,
        collection: str,
        doc_id: str,
        expected: Document,
        partial: Document,
    ) -> bool:
        """Compare-and-swap: apply *partial* only if every *expected*
        field still holds.

        Returns
        -------
        bool
            ``True`` when the patch was applied, ``False`` when a field no
            longer matched or the document does not exist.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the backend identifier, e.g. ``"sqlite"``."""

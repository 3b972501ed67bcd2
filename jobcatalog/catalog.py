"""
The job catalog: the authoritative in-memory collection of job records.

Admin-created records live at the front of the collection, newest first;
external records follow in provider order. Every mutation rewrites the
whole collection to the backing store. A failed write is logged and the
in-memory state stays authoritative for the rest of the process.
"""

import json
import secrets
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .logger import get_logger
from .normalize import normalize_external_jobs, parse_timestamp, to_iso, utc_now
from .query import CATALOG_SEARCH_FIELDS, JobFilters, filter_jobs
from .schema import (
    EDITABLE_FIELDS,
    SOURCE_EXTERNAL,
    SOURCE_LOCAL,
    SYSTEM_FIELDS,
    Job,
    coerce_fields,
)
from .storage import KeyValueStore

logger = get_logger()

JOBS_KEY = "jobcatalog_jobs"


def decode_jobs(raw: Optional[bytes]) -> List[Job]:
    """Decode a persisted collection; anything malformed decodes to []."""
    if not raw:
        return []
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Stored job collection is not valid JSON, starting empty", error=str(e))
        return []
    if not isinstance(data, list):
        logger.warning("Stored job collection is not a list, starting empty", kind=type(data).__name__)
        return []

    jobs: List[Job] = []
    seen = set()
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            job = Job.from_dict(item)
        except TypeError as e:
            logger.warning("Skipping malformed stored job", error=str(e))
            continue
        if not job.id or job.id in seen:
            continue
        seen.add(job.id)
        jobs.append(job)
    return jobs


def encode_jobs(jobs: Iterable[Job]) -> bytes:
    return json.dumps([j.to_dict() for j in jobs], ensure_ascii=False).encode("utf-8")


def _clean_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(k for k in data if k not in EDITABLE_FIELDS and k not in SYSTEM_FIELDS)
    if unknown:
        raise ValueError(f"Unknown job field(s): {', '.join(unknown)}")
    return coerce_fields({k: v for k, v in data.items() if k in EDITABLE_FIELDS})


class JobCatalog:
    """
    Single-writer job catalog over a key-value store.

    Construct once at the composition root, call ``load()``, and hand the
    instance to every consumer.
    """

    def __init__(self, store: KeyValueStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or utc_now
        self._jobs: List[Job] = []

    def load(self) -> "JobCatalog":
        self._jobs = decode_jobs(self.store.read(JOBS_KEY))
        logger.debug("Loaded job catalog", jobs=len(self._jobs))
        return self

    def _save(self) -> bool:
        ok = self.store.write(JOBS_KEY, encode_jobs(self._jobs))
        if not ok:
            logger.error("Failed to persist job catalog; keeping in-memory state", jobs=len(self._jobs))
        return ok

    def _new_id(self) -> str:
        existing = {j.id for j in self._jobs}
        while True:
            candidate = f"job_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"
            if candidate not in existing:
                return candidate

    # Reads

    def get_all(self) -> List[Job]:
        return [job.copy() for job in self._jobs]

    def get_by_id(self, job_id: str) -> Optional[Job]:
        for job in self._jobs:
            if job.id == job_id:
                return job.copy()
        return None

    def get_filtered_jobs(self, query: str = "", filters: Optional[JobFilters] = None) -> List[Job]:
        return [job.copy() for job in filter_jobs(self._jobs, query, filters, CATALOG_SEARCH_FIELDS)]

    def stats(self) -> Dict[str, int]:
        jobs = self._jobs
        external = sum(1 for j in jobs if j.source == SOURCE_EXTERNAL)
        return {
            "total": len(jobs),
            "external_count": external,
            "local_count": len(jobs) - external,
            "remote_count": sum(1 for j in jobs if j.remote),
            "distinct_organizations": len({j.company for j in jobs}),
            "distinct_locations": len({j.location for j in jobs}),
        }

    # Admin mutations

    def add(self, data: Dict[str, Any]) -> Job:
        """Create a local job from admin-supplied fields and put it first."""
        fields = _clean_fields(data)
        now = to_iso(self.clock())
        job = Job(
            id=self._new_id(),
            title=fields.pop("title", ""),
            company=fields.pop("company", ""),
            location=fields.pop("location", ""),
            created_at=now,
            updated_at=now,
            source=SOURCE_LOCAL,
            **fields,
        )
        self._jobs.insert(0, job)
        self._save()
        logger.info("Added job", id=job.id, title=job.title)
        return job.copy()

    def update(self, job_id: str, changes: Dict[str, Any]) -> Optional[Job]:
        """
        Apply ``changes`` over an existing job.

        Identity, creation time and provenance cannot change; attempts are
        ignored. Returns None, without touching storage, for unknown ids.
        """
        fields = _clean_fields(changes)
        for index, job in enumerate(self._jobs):
            if job.id != job_id:
                continue
            now = self.clock()
            previous = parse_timestamp(job.updated_at)
            if previous is not None and previous > now:
                now = previous
            updated = replace(job, **fields, updated_at=to_iso(now))
            self._jobs[index] = updated
            self._save()
            logger.info("Updated job", id=job_id, fields=sorted(fields))
            return updated.copy()
        return None

    def delete_one(self, job_id: str) -> bool:
        before = len(self._jobs)
        self._jobs = [j for j in self._jobs if j.id != job_id]
        if len(self._jobs) == before:
            return False
        self._save()
        logger.info("Deleted job", id=job_id)
        return True

    def delete_many(self, job_ids: Iterable[str]) -> int:
        # A bare string is one id, not a collection of characters
        if isinstance(job_ids, str):
            job_ids = [job_ids]
        doomed = set(job_ids)
        before = len(self._jobs)
        self._jobs = [j for j in self._jobs if j.id not in doomed]
        removed = before - len(self._jobs)
        if removed:
            self._save()
            logger.info("Deleted jobs", requested=len(doomed), removed=removed)
        return removed

    def delete_all(self) -> int:
        removed = len(self._jobs)
        self._jobs = []
        self._save()
        logger.info("Deleted all jobs", removed=removed)
        return removed

    # Provider sync

    def sync_from_external(self, payloads: Iterable[Any]) -> List[Job]:
        """
        Replace every external job with a freshly normalized batch.

        Local jobs are kept untouched. Normalized jobs whose id repeats an
        earlier one in the batch, or an existing local id, are dropped.
        """
        local = [j for j in self._jobs if j.source != SOURCE_EXTERNAL]
        taken = {j.id for j in local}
        incoming: List[Job] = []
        for job in normalize_external_jobs(payloads, now=self.clock()):
            if job.id in taken:
                logger.warning("Dropping external job with duplicate id", id=job.id)
                continue
            taken.add(job.id)
            incoming.append(job)

        replaced = len(self._jobs) - len(local)
        self._jobs = local + incoming
        self._save()
        logger.info("Synced external jobs", replaced=replaced, received=len(incoming), local=len(local))
        return [job.copy() for job in incoming]

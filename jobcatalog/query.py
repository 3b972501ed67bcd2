"""Free-text search and structured filters over job records."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .schema import Job, clean_str_list

# The catalog's own search box does not look at location; a dedicated
# location filter covers that.
CATALOG_SEARCH_FIELDS = ("title", "company", "description", "skills")
FULL_SEARCH_FIELDS = ("title", "company", "location", "description", "skills")


@dataclass
class JobFilters:
    location: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    remote: Optional[bool] = None
    skills: List[str] = field(default_factory=list)


def searchable_text(job: Job, fields: Sequence[str]) -> str:
    parts = []
    for name in fields:
        value = getattr(job, name)
        if isinstance(value, list):
            parts.append(" ".join(value))
        else:
            parts.append(value or "")
    return " ".join(parts).lower()


def matches_query(job: Job, query: str, fields: Sequence[str] = FULL_SEARCH_FIELDS) -> bool:
    term = (query or "").strip().lower()
    if not term:
        return True
    return term in searchable_text(job, fields)


def matches_filters(job: Job, filters: JobFilters) -> bool:
    if filters.location and filters.location.lower() not in job.location.lower():
        return False
    if filters.type and job.type != filters.type:
        return False
    if filters.experience and filters.experience.lower() not in job.experience.lower():
        return False
    if filters.remote is not None and job.remote != filters.remote:
        return False

    wanted = [s.lower() for s in clean_str_list(filters.skills)]
    if wanted:
        have = [s.lower() for s in job.skills]
        # Union match: one overlapping skill is enough
        if not any(w in h for w in wanted for h in have):
            return False
    return True


def filter_jobs(
    jobs: Iterable[Job],
    query: str = "",
    filters: Optional[JobFilters] = None,
    fields: Sequence[str] = FULL_SEARCH_FIELDS,
) -> List[Job]:
    """
    Return the jobs matching ``query`` and every set predicate of ``filters``.

    Matching is case-insensitive substring search except for ``type`` and
    ``remote``, which are exact. Input order is preserved.
    """
    filters = filters or JobFilters()
    return [
        job for job in jobs
        if matches_query(job, query, fields) and matches_filters(job, filters)
    ]

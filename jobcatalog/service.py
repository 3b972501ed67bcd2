"""
Read-side facade used by the command line.

Wraps a JobCatalog and a feed fetcher: searches run against the local
catalog, optionally refreshing it from the feed first. A failed refresh
leaves the catalog as it was and the search still answers from it.
"""

from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from .catalog import JobCatalog
from .logger import get_logger
from .provider import ProviderError
from .query import JobFilters
from .schema import Job

logger = get_logger()

TOP_N = 10

Fetcher = Callable[[], List[Dict[str, Any]]]


def top_values(values: Iterable[str], limit: int = TOP_N) -> List[str]:
    """Most frequent values first; ties keep first-seen order."""
    return [value for value, _ in Counter(values).most_common(limit)]


class JobService:
    def __init__(self, catalog: JobCatalog, fetcher: Fetcher):
        self.catalog = catalog
        self.fetcher = fetcher

    def refresh(self) -> bool:
        """Pull the feed and replace the external jobs. False on failure."""
        logger.record_sync_attempt()
        try:
            payloads = self.fetcher()
        except ProviderError as e:
            logger.record_sync_failure(type(e).__name__)
            logger.warning("Job feed unavailable, keeping current catalog", error=str(e))
            return False
        self.catalog.sync_from_external(payloads)
        logger.record_sync_success()
        return True

    def search_jobs(
        self,
        query: str = "",
        filters: Optional[JobFilters] = None,
        refresh: bool = False,
    ) -> List[Job]:
        if refresh:
            self.refresh()
        return self.catalog.get_filtered_jobs(query, filters)

    def recommended_jobs(self, skills: List[str]) -> List[Job]:
        return self.catalog.get_filtered_jobs("", JobFilters(skills=list(skills)))

    def market_analytics(self) -> Dict[str, Any]:
        jobs = self.catalog.get_all()
        stats = self.catalog.stats()
        return {
            "total_jobs": stats["total"],
            "trending_skills": top_values(skill for job in jobs for skill in job.skills),
            "top_companies": top_values(job.company for job in jobs),
            "remote_jobs": stats["remote_count"],
            "companies": stats["distinct_organizations"],
            "locations": stats["distinct_locations"],
        }

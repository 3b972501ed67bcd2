"""
Tests for service.py - search with refresh, recommendations and analytics.
"""

from jobcatalog.provider import ProviderError
from jobcatalog.query import JobFilters
from jobcatalog.service import JobService, logger as service_logger, top_values


def failing_fetcher():
    raise ProviderError("Job feed request timed out. Try again later.")


class TestRefresh:
    """Test pulling the feed into the catalog."""

    def test_refresh_syncs(self, catalog, feed_payloads):
        service = JobService(catalog, lambda: feed_payloads)
        assert service.refresh() is True
        assert [j.id for j in catalog.get_all()] == ["ext-1", "ext-2"]

    def test_failed_refresh_leaves_catalog_untouched(self, catalog, store, admin_fields, feed_payloads):
        catalog.add(admin_fields)
        catalog.sync_from_external(feed_payloads)
        before = catalog.get_all()
        writes = dict(store.writes)

        service = JobService(catalog, failing_fetcher)
        assert service.refresh() is False
        assert catalog.get_all() == before
        assert store.writes == writes

    def test_refresh_metrics(self, catalog, feed_payloads):
        before = service_logger.get_metrics()
        JobService(catalog, lambda: feed_payloads).refresh()
        JobService(catalog, failing_fetcher).refresh()
        after = service_logger.get_metrics()

        assert after["syncs_attempted"] - before["syncs_attempted"] == 2
        assert after["syncs_successful"] - before["syncs_successful"] == 1
        assert after["syncs_failed"] - before["syncs_failed"] == 1
        assert after["errors_by_type"]["ProviderError"] >= 1


class TestSearchJobs:
    """Test searching with and without a refresh."""

    def test_search_without_refresh_does_not_fetch(self, catalog):
        calls = []

        def fetcher():
            calls.append(1)
            return []

        JobService(catalog, fetcher).search_jobs("anything")
        assert calls == []

    def test_search_with_refresh(self, catalog, feed_payloads):
        service = JobService(catalog, lambda: feed_payloads)
        result = service.search_jobs("spark", refresh=True)
        assert [j.id for j in result] == ["ext-1"]

    def test_search_falls_back_to_local_view(self, catalog, admin_fields):
        local = catalog.add(admin_fields)
        service = JobService(catalog, failing_fetcher)
        result = service.search_jobs("react", JobFilters(remote=True), refresh=True)
        assert result == [local]

    def test_recommended_jobs(self, catalog, feed_payloads):
        catalog.sync_from_external(feed_payloads)
        service = JobService(catalog, lambda: [])
        assert [j.id for j in service.recommended_jobs(["python"])] == ["ext-1"]


class TestAnalytics:
    """Test market analytics aggregation."""

    def test_top_values_ties_keep_first_seen(self):
        assert top_values(["b", "a", "a", "c", "b"], limit=2) == ["b", "a"]

    def test_top_values_limit(self):
        assert top_values([str(i) for i in range(20)]) == [str(i) for i in range(10)]

    def test_market_analytics(self, catalog, admin_fields, feed_payloads):
        catalog.add(admin_fields)
        catalog.add({**admin_fields, "skills": ["Python", "React"]})
        catalog.sync_from_external(feed_payloads)

        analytics = JobService(catalog, lambda: []).market_analytics()

        assert analytics["total_jobs"] == 4
        assert analytics["trending_skills"][:2] == ["Python", "React"]
        assert analytics["top_companies"][0] == "Globex"
        assert analytics["remote_jobs"] == 3
        assert analytics["companies"] == 3
        assert analytics["locations"] == 3

    def test_market_analytics_empty(self, catalog):
        analytics = JobService(catalog, lambda: []).market_analytics()
        assert analytics["total_jobs"] == 0
        assert analytics["trending_skills"] == []
        assert analytics["top_companies"] == []

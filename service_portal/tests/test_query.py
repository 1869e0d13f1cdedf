"""
Unit tests for list query parsing and the local listing pipeline.
"""

import pytest

from service_portal.app.domain import resources
from service_portal.app.domain.normalizer import RawCollection, normalize_batch
from service_portal.app.domain.query import build_query, list_page, parse_flag, server_page
from shared.errors import ValidationError


def _tenders(count):
    return normalize_batch("tender", [
        {"Id": i, "Title": f"Tender {i:02d}", "Status": "pb" if i % 2 else "dr", "EstimatedValue": i * 10}
        for i in range(1, count + 1)
    ])


class TestBuildQuery:
    """Query parameter validation."""

    def test_defaults(self):
        query = build_query(resources.TENDERS, {})
        assert query.page == 1
        assert query.limit == 10
        assert query.filters == ()
        assert query.sort_by is None

    def test_filter_values_mapped_through_codes(self):
        query = build_query(resources.TENDERS, {"status": "pb", "tenderType": "RS"})
        assert query.filters == (("status", "published"), ("tender_type", "restricted"))

    def test_all_means_no_filter(self):
        assert build_query(resources.TENDERS, {"status": "all"}).filters == ()

    @pytest.mark.parametrize("params,field", [
        ({"page": "0"}, "page"),
        ({"page": "two"}, "page"),
        ({"limit": "-1"}, "limit"),
        ({"limit": "1000"}, "limit"),
        ({"status": "sideways"}, "status"),
        ({"sortBy": "colour"}, "sortBy"),
        ({"sortOrder": "up"}, "sortOrder"),
    ])
    def test_invalid_values_name_the_field(self, params, field):
        with pytest.raises(ValidationError) as exc_info:
            build_query(resources.TENDERS, params)
        assert exc_info.value.details["field"] == field
        assert exc_info.value.status_code == 400

    def test_rounds_use_page_size_and_q(self):
        query = build_query(resources.ROUNDS, {"q": "goods", "pageSize": "2", "limit": "50"})
        assert query.limit == 2
        assert query.search == "goods"

    def test_parse_flag(self):
        assert parse_flag("true", "includeInvitations") is True
        assert parse_flag(None, "includeInvitations") is False
        with pytest.raises(ValidationError):
            parse_flag("perhaps", "includeInvitations")


class TestListPage:
    """Local filter, sort and paginate."""

    def test_pages_rounded_up(self):
        query = build_query(resources.TENDERS, {"limit": "10"})
        page, pagination = list_page(_tenders(23), query)
        assert len(page) == 10
        assert pagination.to_dict() == {"total": 23, "page": 1, "limit": 10, "pages": 3}

    def test_last_page_partial(self):
        query = build_query(resources.TENDERS, {"limit": "10", "page": "3"})
        page, _ = list_page(_tenders(23), query)
        assert [t.id for t in page] == ["21", "22", "23"]

    def test_page_past_end_is_empty(self):
        query = build_query(resources.TENDERS, {"page": "9"})
        page, pagination = list_page(_tenders(5), query)
        assert page == []
        assert pagination.total == 5

    def test_filter_and_search(self):
        query = build_query(resources.TENDERS, {"status": "published", "search": "tender 0"})
        page, pagination = list_page(_tenders(12), query, resources.TENDERS.search_fields)
        assert [t.id for t in page] == ["1", "3", "5", "7", "9"]
        assert pagination.total == 5

    def test_sort_descending_with_missing_last(self):
        records = normalize_batch("tender", [
            {"Id": 1, "EstimatedValue": 5},
            {"Id": 2},
            {"Id": 3, "EstimatedValue": 50},
        ])
        query = build_query(resources.TENDERS, {"sortBy": "estimatedValue", "sortOrder": "desc"})
        page, _ = list_page(records, query)
        assert [t.id for t in page] == ["3", "1", "2"]


class TestServerPage:
    """Collections the ERP already paged."""

    def test_trusts_upstream_total(self):
        records = _tenders(10)
        raw = RawCollection(records=[{}] * 10, total=23, page=1, limit=10)
        page, pagination = server_page(records, raw, build_query(resources.TENDERS, {}))
        assert len(page) == 10
        assert pagination.pages == 3

    def test_local_filter_reduces_total(self):
        records = _tenders(10)
        raw = RawCollection(records=[{}] * 10, total=23, page=2, limit=10)
        query = build_query(resources.TENDERS, {"status": "pb", "page": "2"})
        page, pagination = server_page(records, raw, query)
        assert len(page) == 5
        assert pagination.total == 18
        assert pagination.page == 2

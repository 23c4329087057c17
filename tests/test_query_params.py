import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.core.config import settings
from app.core.errors import BadRequest
from app.schemas.universal import MAX_PAGE, QueryParams


class QueryParamsTests(unittest.TestCase):
    def test_defaults(self):
        params = QueryParams.from_query({})
        self.assertEqual(params.page, 1)
        self.assertEqual(params.page_size, settings.DEFAULT_PAGE_SIZE)
        self.assertEqual(params.offset, 0)
        self.assertIsNone(params.effective_search)
        self.assertEqual(params.parsed_filter(), {})

    def test_reads_wire_names(self):
        params = QueryParams.from_query(
            {
                "page": "2",
                "pageSize": "5",
                "search_fields": "first_name, email",
                "search_value": "jo",
                "include": "created_user",
                "sortBy": "first_name",
                "sortOrder": "asc",
            }
        )
        self.assertEqual(params.page, 2)
        self.assertEqual(params.page_size, 5)
        self.assertEqual(params.offset, 5)
        self.assertEqual(params.search_fields, ["first_name", "email"])
        self.assertEqual(params.include, ["created_user"])
        self.assertEqual(params.sort_by, "first_name")
        self.assertEqual(params.sort_order, "asc")

    def test_per_page_is_alias_of_page_size(self):
        self.assertEqual(QueryParams.from_query({"perPage": "7"}).page_size, 7)
        self.assertEqual(QueryParams.from_query({"perPage": "7", "pageSize": "3"}).page_size, 3)

    def test_page_size_is_clamped(self):
        self.assertEqual(QueryParams.from_query({"pageSize": "0"}).page_size, 1)
        self.assertEqual(QueryParams.from_query({"pageSize": "100000"}).page_size, settings.MAX_PAGE_SIZE)

    def test_page_below_one_becomes_one(self):
        self.assertEqual(QueryParams.from_query({"page": "-4"}).page, 1)

    def test_non_integer_page_is_bad_request(self):
        with self.assertRaises(BadRequest) as ctx:
            QueryParams.from_query({"page": "two"})
        self.assertIn("page", ctx.exception.message)

    def test_page_beyond_limit_is_bad_request(self):
        self.assertEqual(QueryParams.from_query({"page": str(MAX_PAGE)}).page, MAX_PAGE)
        with self.assertRaises(BadRequest):
            QueryParams.from_query({"page": "99999999999999999999"})

    def test_largest_offset_fits_signed_64_bit(self):
        params = QueryParams.from_query({"page": str(MAX_PAGE), "pageSize": str(settings.MAX_PAGE_SIZE)})
        self.assertLessEqual(params.offset, 2**63 - 1)

    def test_empty_search_value_means_no_search(self):
        self.assertIsNone(QueryParams.from_query({"search_value": ""}).effective_search)

    def test_search_is_used_when_search_value_missing(self):
        self.assertEqual(QueryParams.from_query({"search": "acme"}).effective_search, "acme")

    def test_parsed_filter(self):
        self.assertEqual(QueryParams(filter='{"is_active": true}').parsed_filter(), {"is_active": True})
        self.assertIsNone(QueryParams(filter="nope").parsed_filter())
        self.assertIsNone(QueryParams(filter='"text"').parsed_filter())

    def test_pinned_filter_overrides_caller_keys(self):
        params = QueryParams(filter={"is_customer": False, "city": "Austin"})
        pinned = params.with_pinned_filter({"is_customer": True})

        self.assertEqual(pinned.parsed_filter(), {"is_customer": True, "city": "Austin"})
        self.assertEqual(params.parsed_filter(), {"is_customer": False, "city": "Austin"})

    def test_pinned_filter_replaces_unparsable_filter(self):
        pinned = QueryParams(filter="{bad").with_pinned_filter({"is_supplier": True})
        self.assertEqual(pinned.parsed_filter(), {"is_supplier": True})


if __name__ == "__main__":
    unittest.main()

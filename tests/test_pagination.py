import unittest

from querygrid.core.errors import ArgumentError
from querygrid.schemas.response import PagedResponse, PaginationInfo, count_pages
from querygrid.services.pagination import calculate_pagination, page_offset


class PageCountTests(unittest.TestCase):
    def test_pages_round_up(self):
        self.assertEqual(count_pages(18, 5), 4)
        self.assertEqual(count_pages(20, 5), 4)
        self.assertEqual(count_pages(1, 50), 1)

    def test_empty_result_has_no_pages(self):
        self.assertEqual(count_pages(0, 5), 0)
        self.assertEqual(count_pages(0, 0), 0)

    def test_invalid_inputs_raise(self):
        with self.assertRaises(ArgumentError):
            count_pages(-1, 5)
        with self.assertRaises(ArgumentError):
            count_pages(5, -1)
        with self.assertRaises(ArgumentError):
            count_pages(5, 0)


class PaginationInfoTests(unittest.TestCase):
    def test_requested_page_inside_range_is_kept(self):
        info = calculate_pagination(18, 5, 1)
        self.assertEqual(
            (info.current_page, info.page_size, info.total_count, info.total_pages),
            (1, 5, 18, 4),
        )

    def test_page_past_the_end_is_clamped(self):
        self.assertEqual(calculate_pagination(18, 5, 10).current_page, 3)
        self.assertEqual(calculate_pagination(18, 5, 4).current_page, 3)

    def test_empty_result(self):
        info = calculate_pagination(0, 5, 1)
        self.assertEqual((info.current_page, info.total_pages, info.total_count), (0, 0, 0))

    def test_negative_inputs_raise(self):
        with self.assertRaises(ArgumentError):
            calculate_pagination(-3, 5, 1)
        with self.assertRaises(ArgumentError):
            calculate_pagination(3, -5, 1)

    def test_wire_names_are_camel_case(self):
        payload = PaginationInfo.build(1, 5, 18).model_dump(by_alias=True)
        self.assertEqual(payload, {"currentPage": 1, "pageSize": 5, "totalCount": 18, "totalPages": 4})

    def test_paged_response_payload(self):
        response = PagedResponse[dict](data=[{"id": 1}], pagination=PaginationInfo.build(0, 10, 1))
        self.assertEqual(
            response.to_payload(),
            {
                "data": [{"id": 1}],
                "pagination": {"currentPage": 0, "pageSize": 10, "totalCount": 1, "totalPages": 1},
            },
        )


class PageOffsetTests(unittest.TestCase):
    def test_offsets_are_one_based(self):
        self.assertEqual(page_offset(1, 5), 0)
        self.assertEqual(page_offset(3, 5), 10)
        self.assertEqual(page_offset(0, 5), 0)

    def test_negative_rows_raise(self):
        with self.assertRaises(ArgumentError):
            page_offset(1, -5)


if __name__ == "__main__":
    unittest.main()

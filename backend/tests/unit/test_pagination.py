"""
페이지네이션 단위 테스트.

Pagination.coerce의 기본값/보정 규칙과 page_count 계산을 테스트합니다.
"""
import pytest

from forumdb.db.query.pagination import Pagination, page_count


# =============================================================================
# Pagination.coerce 테스트
# =============================================================================
class TestPaginationCoerce:
    """page/page_size 보정 테스트."""

    def test_defaults(self):
        p = Pagination.coerce()
        assert p.page == 1
        assert p.page_size == 10
        assert p.offset == 0
        assert p.limit == 10

    def test_numeric_strings(self):
        p = Pagination.coerce("3", " 20 ")
        assert (p.page, p.page_size) == (3, 20)
        assert p.offset == 40

    def test_leading_integer_is_used(self):
        p = Pagination.coerce("2.5", "12abc")
        assert (p.page, p.page_size) == (2, 12)
        assert Pagination.coerce(3.9, "+7").page == 3

    @pytest.mark.parametrize("raw", ["abc", "", None, "x1", ".5", True])
    def test_malformed_values_fall_back(self, raw):
        p = Pagination.coerce(raw, raw, default_size=15)
        assert p.page == 1
        assert p.page_size == 15

    @pytest.mark.parametrize("raw", [0, -4, "-1"])
    def test_values_below_one_are_clamped(self, raw):
        p = Pagination.coerce(raw, raw)
        assert p.page == 1
        assert p.page_size == 1

    def test_max_size_caps_page_size(self):
        assert Pagination.coerce(1, 5000, max_size=100).page_size == 100
        assert Pagination.coerce(1, 5000).page_size == 5000


# =============================================================================
# page_count 테스트
# =============================================================================
class TestPageCount:
    """ceil(total / size) 테스트."""

    @pytest.mark.parametrize(
        "total,size,expected",
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5)],
    )
    def test_ceil(self, total, size, expected):
        assert page_count(total, size) == expected
        assert Pagination(page=1, page_size=size).page_count(total) == expected

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            page_count(3, 0)

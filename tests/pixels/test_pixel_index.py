"""Tests for coordinate-keyed pixel ids."""

import pytest

from forestlens.pixels import PixelIndex

pytestmark = pytest.mark.unit


class TestPixelIndex:

    def test_first_seen_order(self):
        index = PixelIndex()

        assert index.assign(175.1, -41.1) == 0
        assert index.assign(175.2, -41.1) == 1
        assert index.assign(175.3, -41.1) == 2

    def test_assign_is_idempotent(self):
        index = PixelIndex()
        first = index.assign(175.086901, -41.148613)

        for _ in range(5):
            assert index.assign(175.086901, -41.148613) == first
        assert len(index) == 1

    def test_same_key_after_rounding(self):
        index = PixelIndex()

        assert index.assign(175.0869011, -41.1486131) == index.assign(175.0869012, -41.1486132)

    def test_different_beyond_precision(self):
        index = PixelIndex()

        assert index.assign(175.086901, -41.148613) != index.assign(175.086902, -41.148613)

    def test_key_format(self):
        assert PixelIndex().key(175.0869, -41.1) == "175.086900_-41.100000"
        assert PixelIndex(precision=2).key(175.0869, -41.1) == "175.09_-41.10"

    def test_lookup_and_contains(self):
        index = PixelIndex()
        index.assign(1.0, 2.0)

        assert index.lookup(1.0, 2.0) == 0
        assert index.lookup(3.0, 4.0) is None
        assert (1.0, 2.0) in index
        assert (3.0, 4.0) not in index

    def test_separate_indexes_are_independent(self):
        a = PixelIndex()
        b = PixelIndex()
        a.assign(1.0, 1.0)
        a.assign(2.0, 2.0)

        assert b.assign(2.0, 2.0) == 0
        assert len(a) == 2
        assert len(b) == 1

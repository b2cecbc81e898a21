"""Tests for the reference cache state machine."""

from __future__ import annotations

import pytest

from gridcalc.formulas.tokens import Token
from gridcalc.reference_cache import ReferenceCache


class TestReferenceCache:
    def test_unvisited(self):
        cache = ReferenceCache()
        assert cache.lookup("A1") is None
        assert "A1" not in cache

    def test_reserve_marks_pending(self):
        cache = ReferenceCache()
        assert cache.reserve("A1") is False
        assert cache.lookup("A1").is_pending
        assert cache.pending() == ["A1"]

    def test_reserve_twice_reports_existing(self):
        cache = ReferenceCache()
        cache.reserve("A1")
        assert cache.reserve("A1") is True
        assert len(cache) == 1

    def test_commit_resolves(self):
        cache = ReferenceCache()
        cache.reserve("B2")
        cache.commit("B2", Token.number(4))
        assert cache.lookup("B2") == Token.number(4)
        assert cache.pending() == []
        assert cache.reserve("B2") is True
        assert cache.lookup("B2") == Token.number(4)

    def test_commit_without_reserve(self):
        cache = ReferenceCache()
        cache.commit("C3", Token.text("x"))
        assert list(cache) == ["C3"]

    def test_commit_pending_rejected(self):
        cache = ReferenceCache()
        with pytest.raises(ValueError):
            cache.commit("A1", Token.pending())


class TestToken:
    def test_display(self):
        assert Token.number(-16).to_display() == "-16"
        assert Token.text("#E_CROSS_REF").to_display() == "#E_CROSS_REF"
        assert Token.pending().to_display() == ""

    def test_number_is_int(self):
        assert isinstance(Token.number(3).value, int)
        assert Token.number(3).is_number
        assert not Token.text("3").is_number

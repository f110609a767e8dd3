"""
Tests for the clause builder.
Covers WHERE composition and reusable predicates.
"""
import pytest

from sqlcommands.dialect import Dialect
from sqlcommands.errors import ArgumentError
from sqlcommands.sql import clauses
from sqlcommands.sql.clauses import build_where


class TestBuildWhere:
    """Test WHERE clause generation."""

    def test_equality(self):
        frag = build_where({"status": "active"})
        assert frag.sql == "`status` = ?"
        assert frag.params == ("active",)

    def test_in_list(self):
        frag = build_where({"id": [1, 2, 3]})
        assert frag.sql == "`id` IN (?, ?, ?)"
        assert frag.params == (1, 2, 3)

    def test_mixed_conditions_keep_order(self):
        frag = build_where({"status": "active", "id": (4, 5), "age": 30})
        assert frag.sql == "`status` = ? AND `id` IN (?, ?) AND `age` = ?"
        assert frag.params == ("active", 4, 5, 30)

    def test_placeholder_count_matches_params(self):
        conditions = [
            {"a": 1},
            {"a": [1], "b": [2, 3, 4]},
            {"a": None, "b": "x", "c": [True, False]},
        ]
        for cond in conditions:
            frag = build_where(cond)
            assert frag.sql.count("?") == len(frag.params)

    def test_empty_list_rejected(self):
        with pytest.raises(ArgumentError, match="Empty array"):
            build_where({"id": []})

    def test_idempotent(self):
        assert build_where({"a": 1, "b": [2]}) == build_where({"a": 1, "b": [2]})


class TestPatternPredicates:
    """Test LIKE/GLOB/REGEXP helpers keep values out of the text."""

    def test_like(self):
        p = clauses.like("name", "Jo%")
        assert p.expression == "`name` LIKE ?"
        assert p.params == ("Jo%",)

    def test_not_like(self):
        assert clauses.not_like("name", "x").expression == "`name` NOT LIKE ?"

    def test_glob_and_regexp(self):
        assert clauses.glob("name", "J*").expression == "`name` GLOB ?"
        assert clauses.regexp("name", "^J").expression == "`name` REGEXP ?"

    def test_starts_with_escapes_metacharacters(self):
        p = clauses.starts_with("code", "50%_off")
        assert p.expression == "`code` LIKE ? ESCAPE '!'"
        assert p.params == ("50!%!_off%",)

    def test_ends_with_and_contains(self):
        assert clauses.ends_with("email", ".com").params == ("%.com",)
        assert clauses.contains("name", "oh").params == ("%oh%",)

    def test_escape_character_is_doubled(self):
        assert clauses.contains("note", "wow!").params == ("%wow!!%",)

    def test_generic_dialect_escape_has_no_backslash(self):
        p = clauses.starts_with("path", "C:\\tmp_", dialect=Dialect.GENERIC)
        assert p.expression == "`path` LIKE ? ESCAPE '!'"
        assert "\\" not in p.expression
        assert p.params == ("C:\\tmp!_%",)

    def test_malicious_value_stays_in_params(self):
        evil = "' OR '1'='1"
        p = clauses.like("name", evil)
        assert evil not in p.expression
        assert p.params == (evil,)


class TestRangePredicates:
    """Test BETWEEN and comparison helpers."""

    def test_between_order(self):
        p = clauses.between("age", 18, 65)
        assert p.expression == "`age` BETWEEN ? AND ?"
        assert p.params == (18, 65)

    def test_not_between(self):
        assert clauses.not_between("age", 1, 2).expression == "`age` NOT BETWEEN ? AND ?"

    def test_compare(self):
        p = clauses.compare("age", ">=", 21)
        assert p.expression == "`age` >= ?"
        assert p.params == (21,)

    def test_compare_rejects_unknown_operator(self):
        with pytest.raises(ArgumentError):
            clauses.compare("age", "; DROP", 1)

    def test_null_checks(self):
        assert clauses.is_null("email").expression == "`email` IS NULL"
        assert clauses.is_not_null("email").params == ()

    def test_date_range(self):
        p = clauses.date_range("created_at", "2024-01-01", "2024-02-01")
        assert p.expression == "`created_at` >= ? AND `created_at` <= ?"
        assert p.params == ("2024-01-01", "2024-02-01")
        assert clauses.date_range("created_at", None, None).expression == "1=1"
        assert clauses.date_range("created_at", None, "2024-02-01").params == ("2024-02-01",)


class TestListAndCombination:
    """Test IN helpers, search, AND/OR and pagination."""

    def test_in_list(self):
        p = clauses.in_list("id", [1, 2])
        assert p.expression == "`id` IN (?, ?)"
        assert p.params == (1, 2)

    def test_empty_in_list_is_always_false(self):
        assert clauses.in_list("id", []).expression == "1=0"
        assert clauses.not_in_list("id", []).expression == "1=1"

    def test_search(self):
        p = clauses.search(["name", "email"], "jo")
        assert p.expression == "(`name` LIKE ? ESCAPE '!' OR `email` LIKE ? ESCAPE '!')"
        assert p.params == ("%jo%", "%jo%")

    def test_and_or(self):
        p = clauses.or_([clauses.like("name", "J%"), clauses.between("age", 1, 9)])
        assert p.expression == "(`name` LIKE ? OR `age` BETWEEN ? AND ?)"
        assert p.params == ("J%", 1, 9)
        single = clauses.like("name", "x")
        assert clauses.and_([single]) is single

    def test_combine_requires_predicates(self):
        with pytest.raises(ArgumentError):
            clauses.and_([])

    def test_pagination(self):
        assert clauses.pagination(1, 20) == {"limit": 20, "offset": 0}
        assert clauses.pagination(3, 20) == {"limit": 20, "offset": 40}
        assert clauses.pagination(0, 5000) == {"limit": 1000, "offset": 0}

    def test_dialect_argument_accepted(self):
        p = clauses.like("name", "x", dialect=Dialect.GENERIC)
        assert p.expression == "`name` LIKE ?"

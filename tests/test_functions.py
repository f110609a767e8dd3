"""
Tests for the SQL function/expression library.
"""
import pytest

from sqlcommands.dialect import Dialect
from sqlcommands.errors import ArgumentError
from sqlcommands.sql import functions as fn
from sqlcommands.sql.fragments import Expr, literal


class TestAggregates:
    """Test aggregate helpers."""

    def test_count(self):
        assert fn.count() == "COUNT(*)"
        assert fn.count("id") == "COUNT(`id`)"
        assert fn.count("email", distinct=True) == "COUNT(DISTINCT `email`)"

    def test_basic_aggregates(self):
        assert fn.sum("amount") == "SUM(`amount`)"
        assert fn.avg("score") == "AVG(`score`)"
        assert fn.min("age") == "MIN(`age`)"
        assert fn.max("age") == "MAX(`age`)"

    def test_results_are_expressions(self):
        assert isinstance(fn.sum("amount"), Expr)

    def test_group_concat_dialects(self):
        assert fn.group_concat("name") == "GROUP_CONCAT(`name`, ',')"
        assert fn.group_concat("name", "; ", dialect=Dialect.GENERIC) == "GROUP_CONCAT(`name` SEPARATOR '; ')"


class TestStringFunctions:
    """Test string helpers."""

    def test_length_and_case(self):
        assert fn.length("name") == "LENGTH(`name`)"
        assert fn.upper("name") == "UPPER(`name`)"
        assert fn.lower("users.name") == "LOWER(`users`.`name`)"

    def test_trim_family(self):
        assert fn.trim("x") == "TRIM(`x`)"
        assert fn.ltrim("x") == "LTRIM(`x`)"
        assert fn.rtrim("x") == "RTRIM(`x`)"

    def test_substring(self):
        assert fn.substring("name", 1, 5) == "SUBSTR(`name`, 1, 5)"
        assert fn.substring("name", 1) == "SUBSTR(`name`, 1)"
        with pytest.raises(ArgumentError):
            fn.substring("name", "1; DROP")

    def test_replace_escapes_literals(self):
        assert fn.replace("bio", "it's", "it is") == "REPLACE(`bio`, 'it''s', 'it is')"

    def test_instr(self):
        assert fn.instr("email", "@") == "INSTR(`email`, '@')"

    def test_concat_dialects(self):
        assert fn.concat(["first_name", "last_name"]) == "`first_name` || `last_name`"
        assert fn.concat("nickname") == "`nickname`"
        generic = fn.concat(["first_name", literal(" "), "last_name"], dialect=Dialect.GENERIC)
        assert generic == "CONCAT(`first_name`, ' ', `last_name`)"
        with pytest.raises(ArgumentError):
            fn.concat([])


class TestMathFunctions:
    """Test math and trig helpers."""

    def test_math(self):
        assert fn.abs_("delta") == "ABS(`delta`)"
        assert fn.round_("price", 2) == "ROUND(`price`, 2)"
        assert fn.ceil("x") == "CEIL(`x`)"
        assert fn.floor("x") == "FLOOR(`x`)"
        assert fn.power("x", 2) == "POWER(`x`, 2.0)"
        assert fn.sqrt("x") == "SQRT(`x`)"
        assert fn.mod("x", 3) == "MOD(`x`, 3)"

    def test_random_dialects(self):
        assert fn.random() == "RANDOM()"
        assert fn.random(dialect=Dialect.GENERIC) == "RAND()"

    def test_trig(self):
        assert fn.sin("a") == "SIN(`a`)"
        assert fn.cos("a") == "COS(`a`)"
        assert fn.tan("a") == "TAN(`a`)"
        assert fn.pi() == "PI()"


class TestDateFunctions:
    """Test date/time helpers."""

    def test_date_with_modifiers(self):
        assert fn.date("created_at") == "DATE(`created_at`)"
        assert fn.date("created_at", ["+1 day", "start of month"]) == \
            "DATE(`created_at`, '+1 day', 'start of month')"

    def test_single_modifier_string(self):
        assert fn.date("created", "+1 day") == "DATE(`created`, '+1 day')"
        assert fn.datetime("d", "localtime") == "DATETIME(`d`, 'localtime')"

    def test_generic_rejects_modifiers(self):
        with pytest.raises(ArgumentError):
            fn.date("created_at", ["+1 day"], dialect=Dialect.GENERIC)

    def test_strftime_dialects(self):
        assert fn.strftime("%Y-%m", "created_at") == "STRFTIME('%Y-%m', `created_at`)"
        assert fn.strftime("%Y-%m", "created_at", dialect=Dialect.GENERIC) == \
            "DATE_FORMAT(`created_at`, '%Y-%m')"

    def test_date_diff(self):
        assert fn.date_diff_days("end", "start") == "JULIANDAY(`end`) - JULIANDAY(`start`)"
        assert fn.date_diff_days("end", "start", dialect=Dialect.GENERIC) == "DATEDIFF(`end`, `start`)"

    def test_now_and_julianday(self):
        assert fn.now() == "CURRENT_TIMESTAMP"
        assert fn.julianday("d") == "JULIANDAY(`d`)"
        assert fn.datetime("d", ["localtime"]) == "DATETIME(`d`, 'localtime')"


class TestWindowFunctions:
    """Test window helpers."""

    def test_row_number(self):
        assert fn.row_number(["user_id"], ["total"], "desc") == \
            "ROW_NUMBER() OVER (PARTITION BY `user_id` ORDER BY `total` DESC)"

    def test_rank_without_partition(self):
        assert fn.rank(order_by=["score"]) == "RANK() OVER (ORDER BY `score` ASC)"
        assert fn.dense_rank() == "DENSE_RANK() OVER ()"

    def test_ntile(self):
        assert fn.ntile(4, ["score"]) == "NTILE(4) OVER (ORDER BY `score` ASC)"

    def test_single_column_strings(self):
        assert fn.row_number(partition_by="dept", order_by="salary") == \
            "ROW_NUMBER() OVER (PARTITION BY `dept` ORDER BY `salary` ASC)"
        assert fn.ntile(2, "score") == "NTILE(2) OVER (ORDER BY `score` ASC)"
        assert fn.lag("total", order_by="id") == "LAG(`total`, 1, NULL) OVER (ORDER BY `id` ASC)"

    def test_lag_lead(self):
        assert fn.lag("total", 1, 0, order_by=["id"]) == "LAG(`total`, 1, 0) OVER (ORDER BY `id` ASC)"
        assert fn.lead("total") == "LEAD(`total`, 1, NULL) OVER ()"


class TestJsonFunctions:
    """Test JSON helpers."""

    def test_json_extract(self):
        assert fn.json_extract("payload", "$.a") == "JSON_EXTRACT(`payload`, '$.a')"

    def test_json_object_and_array(self):
        assert fn.json_object({"n": "name", "e": "email"}) == "JSON_OBJECT('n', `name`, 'e', `email`)"
        assert fn.json_array(["a", "b"]) == "JSON_ARRAY(`a`, `b`)"
        assert fn.json_array("tags") == "JSON_ARRAY(`tags`)"

    def test_json_array_length(self):
        assert fn.json_array_length("tags") == "JSON_ARRAY_LENGTH(`tags`)"
        assert fn.json_array_length("tags", "$.x", dialect=Dialect.GENERIC) == "JSON_LENGTH(`tags`, '$.x')"


class TestConditionalFunctions:
    """Test conditional helpers."""

    def test_coalesce(self):
        assert fn.coalesce(["nick", "name"], "anon") == "COALESCE(`nick`, `name`, 'anon')"
        assert fn.coalesce("email", "n/a") == "COALESCE(`email`, 'n/a')"

    def test_ifnull_nullif(self):
        assert fn.ifnull("age", 0) == "IFNULL(`age`, 0)"
        assert fn.nullif("status", "") == "NULLIF(`status`, '')"

    def test_case_when(self):
        expr = fn.case_when([("`age` < 18", "minor"), ("`age` >= 65", "senior")], "adult")
        assert expr == "CASE WHEN `age` < 18 THEN 'minor' WHEN `age` >= 65 THEN 'senior' ELSE 'adult' END"

    def test_cast(self):
        assert fn.cast("total", "decimal(10,2)") == "CAST(`total` AS DECIMAL(10,2))"
        with pytest.raises(ArgumentError):
            fn.cast("total", "INT); DROP TABLE x; --")

    def test_pivot(self):
        cols = fn.pivot("status", "total", ["completed", "pending"])
        assert cols[0] == "SUM(CASE WHEN `status` = 'completed' THEN `total` ELSE 0 END) AS `completed`"
        assert len(cols) == 2
        with pytest.raises(ArgumentError):
            fn.pivot("status", "total", ["x"], aggregate="DROP")


class TestLiterals:
    """Test literal rendering and aliases."""

    def test_literal(self):
        assert literal(None) == "NULL"
        assert literal(True) == "1"
        assert literal(3) == "3"
        assert literal("O'Brien") == "'O''Brien'"

    def test_non_finite_floats_rejected(self):
        for value in (float("nan"), float("inf"), float("-inf")):
            with pytest.raises(ArgumentError):
                literal(value)
        with pytest.raises(ArgumentError):
            fn.coalesce("score", float("nan"))
        assert literal(1.5) == "1.5"

    def test_alias(self):
        assert fn.alias(fn.count(), "n") == "COUNT(*) AS `n`"
        assert fn.alias("name", "full name") == "`name` AS `full_name`"

    def test_distinct(self):
        assert fn.distinct("status") == "DISTINCT `status`"

"""
Unit tests for attribute validation.

Tests coercion, per-field constraints, cross-field invariants, the order
in which failures are reported, and the immutable records produced.
"""

from types import MappingProxyType

import pytest

from terrasynth.exceptions import (
    ConstraintViolationError,
    InvariantViolationError,
    MissingFieldError,
    ValidationError,
)
from terrasynth.references import token_for
from terrasynth.schema import (
    AtLeastOneOf,
    CompatibilityTable,
    FieldOrdering,
    ForbiddenWhen,
    MutuallyExclusive,
    Predicate,
    RequiredWhen,
    cidr_block,
    define,
)
from terrasynth.validation import ValidatedAttributes, validate


class TestCoercion:
    """Test per-type coercion of raw values."""

    def test_integer_accepts_integral_values(self):
        schema = define({"size": "integer"})

        assert validate(schema, {"size": 5})["size"] == 5
        assert validate(schema, {"size": 5.0})["size"] == 5
        assert validate(schema, {"size": " 42 "})["size"] == 42

    def test_integer_rejects_booleans_and_fractions(self):
        schema = define({"size": "integer"})

        for value in (True, 5.5, "five"):
            with pytest.raises(ConstraintViolationError) as exc_info:
                validate(schema, {"size": value})
            assert exc_info.value.rule == "type"
            assert exc_info.value.field_path == "size"

    def test_float_rejects_non_finite(self):
        schema = define({"ratio": "float"})

        assert validate(schema, {"ratio": "0.25"})["ratio"] == 0.25
        with pytest.raises(ConstraintViolationError):
            validate(schema, {"ratio": float("inf")})

    def test_float_out_of_range_integer(self):
        schema = define({"ratio": "float"})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"ratio": 10**400})

        assert exc_info.value.rule == "type"
        assert "out of range" in exc_info.value.message

    def test_integer_string_past_digit_limit(self):
        schema = define({"size": "integer"})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"size": "9" * 5000})

        assert exc_info.value.rule == "type"
        assert exc_info.value.field_path == "size"

    def test_boolean_accepts_true_false_strings(self):
        schema = define({"enabled": "boolean"})

        assert validate(schema, {"enabled": "TRUE"})["enabled"] is True
        assert validate(schema, {"enabled": "false"})["enabled"] is False
        with pytest.raises(ConstraintViolationError):
            validate(schema, {"enabled": 1})

    def test_string_rejects_non_strings(self):
        schema = define({"name": "string"})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"name": 12})

        assert exc_info.value.rule == "type"
        assert exc_info.value.value == 12

    def test_enum(self):
        schema = define({"tier": {"type": "enum", "values": ["web", "db"]}})

        assert validate(schema, {"tier": "db"})["tier"] == "db"
        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"tier": "cache"})
        assert exc_info.value.rule == "enum"

    def test_lists_become_tuples_and_maps_read_only(self):
        schema = define(
            {
                "zones": {"type": "list", "items": "string"},
                "tags": {"type": "map", "value": "string"},
            }
        )

        record = validate(schema, {"zones": ["a", "b"], "tags": {"env": "prod"}})

        assert record["zones"] == ("a", "b")
        assert isinstance(record["tags"], MappingProxyType)
        with pytest.raises(TypeError):
            record["tags"]["env"] = "dev"  # type: ignore[index]

    def test_tokens_are_accepted_for_any_type(self):
        schema = define({"size": {"type": "integer", "min": 10}, "cidr": {"type": cidr_block()}})
        token = token_for("network", "main", "cidr")

        record = validate(schema, {"size": token_for("disk", "main", "size"), "cidr": token})

        assert record["cidr"] is token
        assert record["size"] == token_for("disk", "main", "size")


class TestConstraints:
    """Test constraint checks and the rule names they report."""

    @pytest.mark.parametrize(
        "spec,value,rule",
        [
            ({"type": "integer", "min": 0, "max": 900}, -1, "minimum"),
            ({"type": "integer", "min": 0, "max": 900}, 901, "maximum"),
            ({"type": "string", "min_length": 3}, "ab", "min_length"),
            ({"type": "string", "max_length": 3}, "abcd", "max_length"),
            ({"type": "string", "pattern": r"[a-z]+"}, "ABC", "pattern"),
            ({"type": cidr_block()}, "10.0.0.0/33", "cidr"),
            ({"type": cidr_block()}, "300.0.0.0/16", "cidr"),
            ({"type": "list", "items": "string", "min_items": 1}, [], "min_items"),
            ({"type": "list", "items": "string", "max_items": 1}, ["a", "b"], "max_items"),
            ({"type": "list", "items": "string", "unique": True}, ["a", "a"], "unique_items"),
        ],
    )
    def test_rule_names(self, spec, value, rule):
        schema = define({"field": spec})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"field": value})

        assert exc_info.value.rule == rule
        assert exc_info.value.error_code == "CONSTRAINT_VIOLATION"

    def test_pattern_must_match_whole_value(self):
        schema = define({"name": {"type": "string", "pattern": r"[a-z]+"}})

        with pytest.raises(ConstraintViolationError):
            validate(schema, {"name": "abc123"})

    def test_map_key_pattern_path(self):
        schema = define({"tags": {"type": "map", "value": "string", "key_pattern": r"[A-Z][a-z]+"}})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"tags": {"env": "prod"}})

        assert exc_info.value.rule == "key_pattern"
        assert exc_info.value.field_path == "tags.env"

    def test_list_item_path(self):
        schema = define({"ports": {"type": "list", "items": {"type": "integer", "max": 10}}})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"ports": [1, 2, 30]})

        assert exc_info.value.field_path == "ports[2]"

    def test_nested_record_path(self):
        rule = define({"port": {"type": "integer", "required": True}})
        schema = define({"rules": {"type": "list", "items": rule}})

        with pytest.raises(MissingFieldError) as exc_info:
            validate(schema, {"rules": [{"port": 1}, {}]})

        assert exc_info.value.field_path == "rules[1].port"

    def test_unknown_field(self):
        schema = define({"name": "string"}, name="queue")

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"name": "a", "nmae": "b"})

        assert exc_info.value.rule == "unknown_field"
        assert exc_info.value.field_path == "nmae"

    def test_non_mapping_input(self):
        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(define({"name": "string"}), ["name"])  # type: ignore[arg-type]

        assert exc_info.value.rule == "type"


class TestPresence:
    """Test required fields, defaults and absent values."""

    def test_missing_required_field(self):
        schema = define({"name": {"type": "string", "required": True}})

        with pytest.raises(MissingFieldError) as exc_info:
            validate(schema, {})

        assert exc_info.value.field_path == "name"
        assert exc_info.value.error_code == "MISSING_FIELD"

    def test_none_counts_as_absent(self):
        schema = define({"name": {"type": "string", "required": True}, "size": {"type": "integer", "default": 3}})

        with pytest.raises(MissingFieldError):
            validate(schema, {"name": None})
        assert validate(schema, {"name": "a", "size": None})["size"] == 3

    def test_defaults_and_absent_optionals(self):
        schema = define({"size": {"type": "integer", "default": 3}, "label": "string"})

        record = validate(schema, None)

        assert record["size"] == 3
        assert record["label"] is None
        assert set(record) == {"size", "label"}


class TestInvariants:
    """Test each cross-field invariant kind."""

    def test_mutually_exclusive(self):
        schema = define({"name": "string", "name_prefix": "string"}, invariants=(MutuallyExclusive(("name", "name_prefix")),))

        assert validate(schema, {"name": "a"})["name"] == "a"
        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"name": "a", "name_prefix": "b"})
        assert exc_info.value.rule == "mutually_exclusive"
        assert exc_info.value.fields == ("name", "name_prefix")

    def test_at_least_one_of(self):
        schema = define({"a": "string", "b": "string"}, invariants=(AtLeastOneOf(("a", "b")),))

        validate(schema, {"b": "x"})
        with pytest.raises(InvariantViolationError, match="at least one must be set"):
            validate(schema, {})

    def test_required_when_equals(self):
        schema = define(
            {"encrypted": {"type": "boolean", "default": False}, "kms_key": "string"},
            invariants=(RequiredWhen("kms_key", when="encrypted", equals=True),),
        )

        validate(schema, {"encrypted": False})
        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"encrypted": True})
        assert exc_info.value.field_path == "kms_key"
        assert "required when encrypted == True" in exc_info.value.message

    def test_required_when_reports_only_missing_fields(self):
        schema = define(
            {"mode": "string", "cpu": "string", "memory": "string"},
            invariants=(RequiredWhen(("cpu", "memory"), when="mode", equals="fargate"),),
        )

        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"mode": "fargate", "cpu": "256"})

        assert exc_info.value.fields == ("memory",)

    def test_required_when_contains_substring(self):
        schema = define(
            {"engine": "string", "license_model": "string"},
            invariants=(RequiredWhen("license_model", when="engine", contains="oracle"),),
        )

        validate(schema, {"engine": "postgres"})
        validate(schema, {"engine": "oracle-se2", "license_model": "bring-your-own-license"})
        with pytest.raises(InvariantViolationError, match="required when engine contains 'oracle'"):
            validate(schema, {"engine": "oracle-se2"})

    def test_required_when_contains_non_string_on_string_value(self):
        schema = define(
            {"engine": "string", "port": "integer"},
            invariants=(RequiredWhen("port", when="engine", contains=5432),),
        )

        validate(schema, {"engine": "postgres-5432"})

    def test_forbidden_when(self):
        schema = define(
            {"managed": {"type": "boolean", "default": True}, "password": "string"},
            invariants=(ForbiddenWhen("password", when="managed", equals=True),),
        )

        validate(schema, {"managed": False, "password": "secret"})
        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"password": "secret"})
        assert exc_info.value.rule == "forbidden_when"

    def test_compatibility_table(self):
        schema = define(
            {"cpu": "string", "memory": "string"},
            invariants=(CompatibilityTable("cpu", "memory", {"256": ("512", "1024")}),),
        )

        validate(schema, {"cpu": "256", "memory": "1024"})
        validate(schema, {"cpu": "4096", "memory": "1"})
        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"cpu": "256", "memory": "4096"})
        assert exc_info.value.fields == ("memory", "cpu")
        assert "allowed: 512, 1024" in exc_info.value.message

    def test_field_ordering(self):
        schema = define(
            {"low": "integer", "high": "integer"},
            invariants=(FieldOrdering("low", "high", strict=True),),
        )

        validate(schema, {"low": 1, "high": 2})
        with pytest.raises(InvariantViolationError):
            validate(schema, {"low": 2, "high": 2})

    def test_predicate_message(self):
        schema = define(
            {"name": "string"},
            invariants=(Predicate("lowercase", ("name",), lambda r: r["name"] is None or r["name"].islower(), "name must be lowercase"),),
        )

        with pytest.raises(InvariantViolationError, match="name must be lowercase"):
            validate(schema, {"name": "ABC"})

    def test_predicate_string_outcome(self):
        schema = define(
            {"name": "string"},
            invariants=(Predicate("short", ("name",), lambda r: "too long" if len(r["name"] or "") > 3 else True),),
        )

        with pytest.raises(InvariantViolationError, match="too long"):
            validate(schema, {"name": "abcd"})

    def test_tokens_are_skipped_by_comparisons(self):
        schema = define(
            {"low": "integer", "high": "integer"},
            invariants=(FieldOrdering("low", "high"),),
        )

        validate(schema, {"low": 100, "high": token_for("limits", "main", "high")})

    def test_nested_invariant_paths(self):
        rule = define({"low": "integer", "high": "integer"}, invariants=(FieldOrdering("low", "high"),))
        schema = define({"rules": {"type": "list", "items": rule}})

        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {"rules": [{"low": 1, "high": 2}, {"low": 5, "high": 1}]})

        assert exc_info.value.fields == ("rules[1].low", "rules[1].high")


class TestFailFastOrdering:
    """Per-field errors are reported before invariant errors."""

    def test_field_error_precedes_invariant_error(self):
        schema = define(
            {"name": "string", "name_prefix": "string", "size": {"type": "integer", "max": 10}},
            invariants=(MutuallyExclusive(("name", "name_prefix")),),
        )

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"name": "a", "name_prefix": "b", "size": 99})

        assert exc_info.value.field_path == "size"

    def test_first_field_in_declaration_order_wins(self):
        schema = define({"first": {"type": "integer", "max": 1}, "second": {"type": "string", "required": True}})

        with pytest.raises(ConstraintViolationError) as exc_info:
            validate(schema, {"first": 5})

        assert exc_info.value.field_path == "first"

    def test_invariants_run_in_declaration_order(self):
        schema = define(
            {"a": "string", "b": "string"},
            invariants=(
                Predicate("first_rule", ("a",), lambda r: False),
                Predicate("second_rule", ("b",), lambda r: False),
            ),
        )

        with pytest.raises(InvariantViolationError) as exc_info:
            validate(schema, {})

        assert exc_info.value.rule == "first_rule"

    def test_all_validation_errors_share_a_base(self):
        assert issubclass(MissingFieldError, ValidationError)
        assert issubclass(ConstraintViolationError, ValidationError)
        assert issubclass(InvariantViolationError, ValidationError)


class TestValidatedAttributes:
    """Test the immutable record type."""

    @pytest.fixture
    def record(self):
        schema = define(
            {
                "name": {"type": "string", "required": True},
                "size": {"type": "integer", "default": 1},
                "zones": {"type": "list", "items": "string"},
            },
            name="disk",
        )
        return validate(schema, {"name": "data", "zones": ["a"]})

    def test_mapping_and_attribute_access(self, record):
        assert isinstance(record, ValidatedAttributes)
        assert record["name"] == "data"
        assert record.size == 1
        assert len(record) == 3
        with pytest.raises(AttributeError):
            record.missing  # noqa: B018

    def test_immutability(self, record):
        with pytest.raises(AttributeError):
            record.name = "other"

    def test_evolve_revalidates(self, record):
        bigger = record.evolve(size="4")

        assert bigger.size == 4
        assert record.size == 1
        with pytest.raises(ConstraintViolationError):
            record.evolve(size="big")

    def test_equality_and_to_dict(self, record):
        assert record == {"name": "data", "size": 1, "zones": ("a",)}
        assert record.to_dict() == {"name": "data", "size": 1, "zones": ["a"]}
        assert record.present() == {"name": "data", "size": 1, "zones": ("a",)}

    def test_schema_validate_shortcut(self, record):
        assert record.schema.validate({"name": "data", "zones": ["a"]}) == record

"""
Tests for the rule parser and the dotted-path value getter.
"""
import pytest

from request_validation import MISSING, MalformedRuleSpec, RuleDescriptor, parse, rule
from request_validation.data_path import expand_path, get_value
from request_validation.rule_parser import parse_schema


class TestParse:
    """Test parse() on rule-spec strings and lists."""

    def test_single_rule(self):
        assert parse("required") == [RuleDescriptor("required")]

    def test_rules_with_arguments_keep_order(self):
        """Test that rules and their raw string arguments come back in order."""
        assert parse("required|email|unique:users,email") == [
            RuleDescriptor("required"),
            RuleDescriptor("email"),
            RuleDescriptor("unique", ("users", "email")),
        ]

    def test_arguments_are_not_coerced(self):
        descriptors = parse("range:1,10")
        assert descriptors[0].args == ("1", "10")

    def test_whitespace_and_empty_tokens_are_ignored(self):
        assert parse(" required || min: 3 ") == [
            RuleDescriptor("required"),
            RuleDescriptor("min", ("3",)),
        ]

    def test_only_first_colon_separates_arguments(self):
        assert parse("date_format:%H:%M")[0].args == ("%H:%M",)

    def test_empty_spec_yields_no_rules(self):
        assert parse("") == []

    def test_empty_rule_name_is_malformed(self):
        with pytest.raises(MalformedRuleSpec):
            parse("required|:users")

    def test_wrong_type_is_malformed(self):
        with pytest.raises(MalformedRuleSpec):
            parse(42)

    def test_list_mixes_tokens_and_descriptors(self):
        """Test that rule() keeps separator characters inside arguments."""
        descriptors = parse(["required", rule("regex", r"^[a-z]+,\d|x$")])
        assert descriptors == [
            RuleDescriptor("required"),
            RuleDescriptor("regex", (r"^[a-z]+,\d|x$",)),
        ]

    def test_list_with_unsupported_item_is_malformed(self):
        with pytest.raises(MalformedRuleSpec):
            parse(["required", 3])

    def test_rule_helper_rejects_empty_name(self):
        with pytest.raises(MalformedRuleSpec):
            rule("  ")

    def test_parse_is_deterministic(self):
        spec = "required|in:a,b,c|max:3"
        assert parse(spec) == parse(spec)


class TestParseSchema:
    """Test parse_schema() message attachment."""

    def test_field_specific_message_wins(self):
        schema = parse_schema(
            {"email": "required"},
            {"email.required": "Email please", "required": "Needed"},
        )
        assert schema["email"][0].message == "Email please"

    def test_rule_message_is_fallback(self):
        schema = parse_schema({"name": "required"}, {"required": "Needed"})
        assert schema["name"][0].message == "Needed"

    def test_field_order_is_preserved(self):
        schema = parse_schema({"b": "required", "a": "required", "c": "email"})
        assert list(schema) == ["b", "a", "c"]

    def test_rules_must_be_a_mapping(self):
        with pytest.raises(MalformedRuleSpec):
            parse_schema(["required"])


class TestDataPath:
    """Test the value getter distinguishes absent from falsy."""

    def test_nested_value(self):
        assert get_value({"user": {"address": {"city": "Leeds"}}}, "user.address.city") == "Leeds"

    def test_list_index(self):
        assert get_value({"tags": ["a", "b"]}, "tags.1") == "b"

    def test_absent_is_missing(self):
        assert get_value({"user": {}}, "user.name") is MISSING
        assert get_value({"tags": ["a"]}, "tags.5") is MISSING
        assert get_value({"name": "x"}, "name.first") is MISSING

    @pytest.mark.parametrize("value", [None, "", 0, False, []])
    def test_present_falsy_values_are_returned(self, value):
        assert get_value({"field": value}, "field") == value
        assert get_value({"field": value}, "field") is not MISSING

    def test_expand_wildcard_over_list(self):
        data = {"users": [{"email": "a"}, {}]}
        assert expand_path(data, "users.*.email") == ["users.0.email", "users.1.email"]

    def test_expand_wildcard_over_missing_collection(self):
        assert expand_path({}, "users.*.email") == []

    def test_expand_without_wildcard_keeps_absent_path(self):
        assert expand_path({}, "email") == ["email"]

"""
Tests for the built-in validation rules.
"""
import asyncio

import pytest


def passes(service, spec, data):
    return asyncio.run(service.validate(data, {"field": spec})).passed


@pytest.mark.parametrize(
    "spec,value,expected",
    [
        ("email", "a@b.com", True),
        ("email", "first.last+tag@mail.example.org", True),
        ("email", "not-an-email", False),
        ("email", "", False),
        ("alpha", "abc", True),
        ("alpha", "ab1", False),
        ("alpha_numeric", "ab1", True),
        ("alpha_numeric", "ab-1", False),
        ("string", "x", True),
        ("string", 1, False),
        ("number", "1.5", True),
        ("number", 3, True),
        ("number", "x", False),
        ("integer", "12", True),
        ("integer", 12, True),
        ("integer", "1.5", False),
        ("integer", True, False),
        ("boolean", "true", True),
        ("boolean", 0, True),
        ("boolean", "yes", False),
        ("array", [1], True),
        ("array", "1", False),
        ("object", {"a": 1}, True),
        ("object", [1], False),
        ("json", '{"a": 1}', True),
        ("json", "{", False),
        ("url", "https://example.com/x?y=1", True),
        ("url", "example.com", False),
        ("ip", "127.0.0.1", True),
        ("ip", "::1", True),
        ("ip", "999.1.1.1", False),
        ("date", "2024-01-31", True),
        ("date", "2024-13-01", False),
        ("date_format:%d/%m/%Y", "31/01/2024", True),
        ("date_format:%d/%m/%Y", "2024-01-31", False),
        ("before:2024-01-01", "2023-12-31", True),
        ("before:2024-01-01", "2024-01-01", False),
        ("after:2024-01-01", "2024-01-02", True),
        ("after:2024-01-01", "2023-12-31", False),
        ("min:3", "abc", True),
        ("min:3", "ab", False),
        ("max:3", "abc", True),
        ("max:3", "abcd", False),
        ("max:2", [1, 2, 3], False),
        ("range:1,10", "5", True),
        ("range:1,10", 10, False),
        ("above:5", 6, True),
        ("above:5", 5, False),
        ("under:5", 4, True),
        ("under:5", 6, False),
        ("in:draft,published", "draft", True),
        ("in:draft,published", "deleted", False),
        ("not_in:admin,root", "admin", False),
        ("not_in:admin,root", "guest", True),
        ("equals:5", 5, True),
        ("equals:5", "6", False),
        ("not_equals:5", "5", False),
        ("starts_with:ab", "abc", True),
        ("starts_with:ab", "cab", False),
        ("ends_with:c", "abc", True),
        ("includes:b", "abc", True),
        ("includes:x", ["a", "b"], False),
        ("includes:a", ["a", "b"], True),
        ("accepted", "yes", True),
        ("accepted", "on", True),
        ("accepted", "no", False),
    ],
)
def test_builtin_rule(service, spec, value, expected):
    """Test each built-in rule against a passing or failing value."""
    assert passes(service, spec, {"field": value}) is expected


@pytest.mark.parametrize(
    "spec",
    ["email", "min:3", "integer", "url", "in:a,b", "date", "regex:^x$", "same:other"],
)
def test_optional_rules_skip_absent_and_null(service, spec):
    """Test non-presence rules pass when the field is absent or None."""
    assert passes(service, spec, {})
    assert passes(service, spec, {"field": None})


@pytest.mark.parametrize("value", [None, "", [], {}])
def test_required_fails_on_empty(service, value):
    assert not passes(service, "required", {"field": value})


def test_required_fails_on_absent(service):
    assert not passes(service, "required", {})


def test_accepted_fails_on_absent(service):
    assert not passes(service, "accepted", {})


class TestConditionalPresence:
    """Test the required_* family."""

    def test_required_if(self, service):
        rules = {"phone": "required_if:contact_me"}
        assert not asyncio.run(service.validate({"contact_me": "1"}, rules)).passed
        assert asyncio.run(service.validate({}, rules)).passed

    def test_required_when(self, service):
        rules = {"reason": "required_when:status,rejected"}
        result = asyncio.run(service.validate({"status": "rejected"}, rules))
        assert result.messages["reason"] == ("reason is required when status is rejected",)
        assert asyncio.run(service.validate({"status": "approved"}, rules)).passed

    def test_required_with_any(self, service):
        rules = {"city": "required_with_any:street,postcode"}
        assert not asyncio.run(service.validate({"postcode": "LS1"}, rules)).passed
        assert asyncio.run(service.validate({}, rules)).passed

    def test_required_with_all(self, service):
        rules = {"city": "required_with_all:street,postcode"}
        assert asyncio.run(service.validate({"postcode": "LS1"}, rules)).passed
        assert not asyncio.run(service.validate({"street": "x", "postcode": "LS1"}, rules)).passed

    def test_required_without_any(self, service):
        rules = {"email": "required_without_any:phone,fax"}
        assert not asyncio.run(service.validate({"phone": "1"}, rules)).passed
        assert asyncio.run(service.validate({"phone": "1", "fax": "2"}, rules)).passed

    def test_required_without_all(self, service):
        rules = {"email": "required_without_all:phone,fax"}
        assert not asyncio.run(service.validate({}, rules)).passed
        assert asyncio.run(service.validate({"phone": "1"}, rules)).passed


class TestCrossField:
    """Rules that compare against other fields."""

    def test_same(self, service):
        rules = {"repeat": "same:password"}
        assert asyncio.run(service.validate({"password": "x", "repeat": "x"}, rules)).passed
        assert not asyncio.run(service.validate({"password": "x", "repeat": "y"}, rules)).passed

    def test_different(self, service):
        rules = {"new": "different:old"}
        assert not asyncio.run(service.validate({"old": "x", "new": "x"}, rules)).passed

    def test_confirmed(self, service):
        rules = {"password": "confirmed"}
        ok = {"password": "secret", "password_confirmation": "secret"}
        bad = {"password": "secret", "password_confirmation": "other"}
        assert asyncio.run(service.validate(ok, rules)).passed
        result = asyncio.run(service.validate(bad, rules))
        assert result.messages["password"] == ("password confirmation does not match",)

    def test_regex_flags(self, service):
        rules = {"code": "regex:^abc$,i"}
        assert asyncio.run(service.validate({"code": "ABC"}, rules)).passed


def test_rule_missing_argument_is_a_developer_error(service):
    with pytest.raises(ValueError):
        asyncio.run(service.validate({"field": "x"}, {"field": "min"}))


class TestMalformedValues:
    """Hostile or malformed client values fail their field instead of raising."""

    @pytest.mark.parametrize(
        "spec,value",
        [
            ("url", "http://[::1"),
            ("url", "https://[::1/path"),
            ("json", "[" * 200000),
            ("json", '{"a": '),
            ("date", "2024-02-30"),
            ("date", "not a date"),
            ("date", "0001-01-01T00:00:00+01:00"),
            ("before:2000-01-01", "2020-01-01T00:00:00+00:00"),
            ("after:2030-01-01", "2020-01-01T00:00:00+00:00"),
            ("before:2030-01-01", "garbage"),
            ("ip", "999.1.1.1"),
            ("ip", "::1::"),
            ("ip", "1.2.3.4%eth0/24"),
            ("date_format:%Y-%m-%d", "2024-13-45"),
            ("date_format:%Y-%m-%d", "\x00"),
        ],
    )
    def test_value_is_reported_as_a_message(self, service, spec, value):
        result = asyncio.run(service.validate_all(
            {"f": value, "g": ""}, {"f": spec, "g": "required"}
        ))
        assert result.passed is False
        assert len(result.messages["f"]) == 1
        assert result.messages["g"] == ("g is required",)

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("before:2030-01-01", True),
            ("after:2000-01-01", True),
            ("before:2000-01-01", False),
            ("after:2030-01-01", False),
            # 02:00 at +01:00 is 01:00 UTC, an hour after the value
            ("before:2020-01-01T02:00:00+01:00", True),
            ("after:2020-01-01T02:00:00+01:00", False),
        ],
    )
    def test_offset_aware_value_compares_against_limit(self, service, spec, expected):
        """Test an offset-aware value is compared in UTC against naive or aware limits."""
        assert passes(service, spec, {"field": "2020-01-01T00:00:00+00:00"}) is expected

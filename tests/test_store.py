"""
Tests for the unique/exists rules and the HTTP record store.
"""
import asyncio
from unittest import mock

import pytest
import requests

from request_validation import HttpRecordStore, StoreError, UnknownRule


class TestStoreRules:
    """unique and exists against an in-memory store."""

    def test_unique_rules_need_a_store(self, service):
        with pytest.raises(UnknownRule):
            asyncio.run(service.validate({"email": "x@y.com"}, {"email": "unique:users,email"}))

    def test_unique_fails_for_existing_row(self, service, store):
        service.use_store(store)
        result = asyncio.run(service.validate(
            {"email": "taken@example.com"}, {"email": "required|email|unique:users,email"}
        ))
        assert result.passed is False
        assert result.messages["email"] == ("email has already been taken",)
        assert store.lookups == [("users", "email", "taken@example.com", None)]

    def test_unique_passes_for_new_value(self, service, store):
        service.use_store(store)
        assert asyncio.run(service.validate({"email": "new@example.com"}, {"email": "unique:users"})).passed

    def test_unique_ignores_own_row(self, service, store):
        service.use_store(store)
        rules = {"email": "unique:users,email,id,42"}
        assert asyncio.run(service.validate({"email": "taken@example.com"}, rules)).passed

    def test_unique_skips_absent_value(self, service, store):
        service.use_store(store)
        assert asyncio.run(service.validate({}, {"email": "unique:users,email"})).passed
        assert store.lookups == []

    def test_exists(self, service, store):
        service.use_store(store)
        rules = {"country": "exists:countries,code"}
        assert asyncio.run(service.validate({"country": "NZ"}, rules)).passed
        result = asyncio.run(service.validate({"country": "XX"}, rules))
        assert result.messages["country"] == ("country does not exist",)

    def test_unique_without_table_is_a_developer_error(self, service, store):
        service.use_store(store)
        with pytest.raises(ValueError):
            asyncio.run(service.validate({"email": "x@y.com"}, {"email": "unique"}))


def _response(payload):
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestHttpRecordStore:
    """HttpRecordStore lookups over requests."""

    def test_lookup_params(self):
        store = HttpRecordStore("https://lookup.example.com/", timeout_ms=2000)
        with mock.patch("request_validation.store.requests.get",
                        return_value=_response({"exists": True})) as get:
            assert asyncio.run(store.exists("users", "email", "a@b.com", ("id", "3"))) is True

        get.assert_called_once_with(
            "https://lookup.example.com/exists",
            params={
                "table": "users",
                "column": "email",
                "value": "a@b.com",
                "ignore_column": "id",
                "ignore_value": "3",
            },
            timeout=2.0,
        )

    def test_timeout_raises_store_error(self):
        store = HttpRecordStore("https://lookup.example.com")
        with mock.patch("request_validation.store.requests.get",
                        side_effect=requests.exceptions.Timeout()):
            with pytest.raises(StoreError):
                asyncio.run(store.exists("users", "email", "a@b.com"))

    def test_malformed_response_raises_store_error(self):
        store = HttpRecordStore("https://lookup.example.com")
        with mock.patch("request_validation.store.requests.get",
                        return_value=_response({"found": True})):
            with pytest.raises(StoreError):
                asyncio.run(store.exists("users", "email", "a@b.com"))

    def test_store_error_propagates_out_of_validation(self, service):
        service.use_store(HttpRecordStore("https://lookup.example.com"))
        with mock.patch("request_validation.store.requests.get",
                        side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(StoreError):
                asyncio.run(service.validate({"email": "a@b.com"}, {"email": "unique:users"}))

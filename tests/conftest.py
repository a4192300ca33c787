"""Shared fixtures: a fake host request context and an in-memory record store."""
import pytest

from request_validation import RecordStore, RequestContext, ValidationService


class FakeRequestContext(RequestContext):
    """Records every interaction the binding has with the host."""

    def __init__(self, body=None, headers=None, params=None, structured=False):
        self.body = dict(body or {})
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.route_params = dict(params or {})
        self.structured = structured
        self.all_calls = 0
        self.flashed = None
        self.redirected = False
        self.replaced = None

    def all(self):
        self.all_calls += 1
        return dict(self.body)

    def header(self, name, default=None):
        return self.headers.get(name.lower(), default)

    def params(self):
        return dict(self.route_params)

    def accepts_structured(self):
        return self.structured

    def flash_errors(self, errors, input_data):
        self.flashed = {"errors": errors, "input": input_data}

    def redirect_back(self):
        self.redirected = True
        return "redirect:back"

    def replace_input(self, data):
        self.replaced = data


class InMemoryRecordStore(RecordStore):
    """Rows keyed by table name; values compared as strings like form input."""

    def __init__(self, tables):
        self.tables = tables
        self.lookups = []

    async def exists(self, table, column, value, ignore=None):
        self.lookups.append((table, column, value, ignore))
        for row in self.tables.get(table, []):
            if ignore is not None and str(row.get(ignore[0])) == str(ignore[1]):
                continue
            if str(row.get(column)) == str(value):
                return True
        return False


@pytest.fixture(autouse=True)
def no_config_override(monkeypatch):
    """Keep a developer's REQUEST_VALIDATION_CONFIG out of the tests."""
    monkeypatch.delenv("REQUEST_VALIDATION_CONFIG", raising=False)


@pytest.fixture
def service():
    """A ValidationService with the bundled configuration."""
    return ValidationService()


@pytest.fixture
def make_ctx():
    """Factory for fake request contexts."""
    return FakeRequestContext


@pytest.fixture
def store():
    """Record store holding one existing user."""
    return InMemoryRecordStore(
        {
            "users": [{"id": 42, "email": "taken@example.com"}],
            "countries": [{"code": "NZ"}, {"code": "GB"}],
        }
    )

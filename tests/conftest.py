import json

import pytest
import requests

from connectors.local_store import LocalStore
from services.storage_gateway import LocalStorageGateway


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(str(tmp_path / "store.json"))


@pytest.fixture
def storage(local_store):
    return LocalStorageGateway(local_store)


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = b"" if body is None else json.dumps(body).encode()
        self.text = self.content.decode()

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSupabase:
    """Records every request and answers from a queue of (status, body) pairs."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, status_code=200, body=None):
        self.responses.append(FakeResponse(status_code, body))

    def __call__(self, method, url, headers=None, params=None, json=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "json": json})
        if self.responses:
            return self.responses.pop(0)
        return FakeResponse(200, [])


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr("connectors.supabase_connector.requests.request", fake)
    return fake

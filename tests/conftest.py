from datetime import datetime, timedelta, timezone

import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from api_client import RemoteDataService
from local_store import LocalStore
from sync import ProfileDataReconciler, SessionState

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(n, hour=12):
    return (NOW - timedelta(days=n)).replace(hour=hour)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mongo_db(monkeypatch):
    db = mongomock.MongoClient()["sober_tracker_test"]
    monkeypatch.setattr(database, "db", db)
    monkeypatch.setattr(main, "db", db)
    return db


@pytest.fixture
def client(mongo_db):
    return TestClient(main.app)


@pytest.fixture
def remote(mongo_db):
    return RemoteDataService(client=TestClient(main.app, base_url="http://testserver/api"))


def _unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


def _healthy_then_broken(request):
    if request.url.path.endswith("/health"):
        return httpx.Response(200, json={"status": "ok"})
    return httpx.Response(500, json={"detail": "boom"})


@pytest.fixture
def offline_remote():
    return RemoteDataService(client=httpx.Client(base_url="http://remote/api", transport=httpx.MockTransport(_unreachable)))


@pytest.fixture
def flaky_remote():
    return RemoteDataService(client=httpx.Client(base_url="http://remote/api", transport=httpx.MockTransport(_healthy_then_broken)))


def _html_everywhere(request):
    return httpx.Response(200, text="<html><body>Not the API</body></html>", headers={"content-type": "text/html"})


def _healthy_then_garbled(request):
    if request.url.path.endswith("/health"):
        return httpx.Response(200, json={"status": "ok"})
    return httpx.Response(200, json={"checkIns": "nope"})


@pytest.fixture
def html_remote():
    return RemoteDataService(client=httpx.Client(base_url="http://remote/api", transport=httpx.MockTransport(_html_everywhere)))


@pytest.fixture
def garbled_remote():
    return RemoteDataService(client=httpx.Client(base_url="http://remote/api", transport=httpx.MockTransport(_healthy_then_garbled)))


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / "local_store.json")


@pytest.fixture
def offline_reconciler(local_store, offline_remote):
    reconciler = ProfileDataReconciler(local_store, offline_remote, SessionState())
    reconciler.connectivity_probe()
    return reconciler


@pytest.fixture
def online_reconciler(local_store, remote):
    reconciler = ProfileDataReconciler(local_store, remote, SessionState())
    reconciler.connectivity_probe()
    return reconciler

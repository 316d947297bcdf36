import json
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import Client
from django.utils import timezone

from budget.models import Category, ImportBatch, PendingTransaction, Transaction, TransactionType


@pytest.fixture(autouse=True)
def clear_cache():
    """rate limit counters live in the cache; start every test from zero"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username="alice", email="alice@example.com", password="secret123"
    )


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(
        username="bob", email="bob@example.com", password="secret123"
    )


@pytest.fixture
def api_client(user):
    """a test client logged in as ``user``"""
    client = Client()
    client.force_login(user)
    return client


@pytest.fixture
def anon_client():
    return Client()


@pytest.fixture
def send_json():
    """post/put/patch a JSON body with the given client"""
    def _send(client, method, url, data=None):
        body = json.dumps(data) if data is not None else ""
        return getattr(client, method)(url, data=body, content_type="application/json")
    return _send


@pytest.fixture
def make_category(user):
    def _make(name="Groceries", type=TransactionType.NEEDS, owner=None):
        return Category.objects.create(user=owner or user, name=name, type=type)
    return _make


@pytest.fixture
def make_transaction(user):
    def _make(amount, type=TransactionType.NEEDS, on=None, description="Something", owner=None, category=None):
        return Transaction.objects.create(
            user=owner or user,
            description=description,
            amount=Decimal(amount),
            date=on or date(2024, 3, 10),
            type=type,
            category=category,
        )
    return _make


@pytest.fixture
def make_pending(user):
    def _make(amount="10.00", type=TransactionType.NEEDS, on=None, owner=None, category=None,
              expires_in=timedelta(hours=5), batch=None, description="Imported row"):
        owner = owner or user
        if batch is None:
            batch = ImportBatch.objects.create(user=owner, filename="statement.csv")
        return PendingTransaction.objects.create(
            user=owner,
            batch=batch,
            description=description,
            amount=Decimal(amount),
            date=on or date(2024, 3, 10),
            type=type,
            category=category,
            expires_at=timezone.now() + expires_in,
        )
    return _make

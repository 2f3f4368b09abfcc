"""Shared fixtures: in-process stand-ins for the identity provider, object store and data store."""

import os

# Set DATABASE_URL for tests before any studyhub imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from studyhub.core.errors import DataStoreError, IdentityError, StorageError
from studyhub.schemas.auth import Session, SessionUser, SignInRedirect
from studyhub.services.identity import SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, Subscription


class FakeObjectStore:
    def __init__(self, fail_with=None, fail_delete=False):
        self.fail_with = fail_with
        self.fail_delete = fail_delete
        self.objects = {}
        self.uploads = []
        self.deleted = []

    def upload(self, bucket, key, blob, content_type=None):
        self.uploads.append((bucket, key, content_type))
        if self.fail_with:
            raise StorageError(self.fail_with)
        self.objects[(bucket, key)] = blob
        return key

    def get_public_url(self, bucket, key):
        return f"https://cdn.studyhub.test/{bucket}/{key}"

    def delete(self, bucket, key):
        self.deleted.append((bucket, key))
        if self.fail_delete:
            return False
        return self.objects.pop((bucket, key), None) is not None


class FakeDataStore:
    BASE_TIME = datetime(2024, 9, 5, 8, 0, tzinfo=timezone.utc)

    def __init__(self):
        self.collections = {"documents": [], "questions": []}
        self.inserts = []
        self.selects = 0
        self.fail_insert = None
        self.fail_select = None
        self._clock = itertools.count()

    def select_all(self, collection, order_by="created_at", descending=True):
        self.selects += 1
        if self.fail_select:
            raise DataStoreError(self.fail_select)
        rows = [dict(row) for row in self.collections[collection]]
        return sorted(rows, key=lambda row: row[order_by], reverse=descending)

    def insert(self, collection, record):
        self.inserts.append((collection, dict(record)))
        if self.fail_insert:
            raise DataStoreError(self.fail_insert)
        row = dict(
            record,
            id=uuid.uuid4(),
            created_at=self.BASE_TIME + timedelta(minutes=next(self._clock)),
        )
        self.collections[collection].append(row)
        return dict(row)

    def seed(self, collection, **fields):
        return self.insert(collection, fields)


class FakeIdentity:
    def __init__(self, session=None, fail_lookup=None):
        self._session = session
        self.fail_lookup = fail_lookup
        self.listeners = []
        self.lookups = 0
        self.providers_requested = []
        self.signed_out = 0
        # Set by a test: the held token no longer verifies on the next lookup
        self.expired = False
        self.refreshed = None

    def on_session_change(self, listener):
        self.listeners.append(listener)
        return Subscription(self.listeners, listener)

    def emit(self, event, session):
        self._session = session
        for listener in list(self.listeners):
            listener(event, session)

    async def get_current_session(self):
        self.lookups += 1
        if self.fail_lookup:
            raise IdentityError(self.fail_lookup)
        if self._session is not None and self.expired:
            self.expired = False
            if self.refreshed is not None:
                self.emit(TOKEN_REFRESHED, self.refreshed)
            else:
                self.emit(SIGNED_OUT, None)
        return self._session

    async def sign_in_with_provider(self, name):
        self.providers_requested.append(name)
        return SignInRedirect(
            provider=name,
            auth_uri="https://accounts.google.test/o/oauth2/auth?state=abc",
            session_id="pending-1",
        )

    async def complete_sign_in(self, request_uri):
        session = make_session(SessionUser(id="u-minh", email="minh@example.com", display_name="Minh Trần"))
        self.emit(SIGNED_IN, session)
        return session

    async def sign_out(self):
        self.signed_out += 1
        self.emit(SIGNED_OUT, None)


def make_session(user):
    return Session(user=user, id_token="id-token", refresh_token="refresh-token")


@pytest.fixture
def lan():
    """Signed-in user without a display name"""
    return SessionUser(id="u-lan", email="lan@example.com")


@pytest.fixture
def minh():
    return SessionUser(
        id="u-minh",
        email="minh@example.com",
        display_name="Minh Trần",
        avatar_url="https://lh3.googleusercontent.test/minh.png",
    )


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def data_store():
    return FakeDataStore()

# Shared fixtures for the OAuth2 core tests.
# Created: 2026-10-19

import pytest
from helpers import InMemoryModel

from pocketoauth.config import reset_settings
from pocketoauth.models import Client


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def model():
    store = InMemoryModel()
    store.add_client(
        Client(
            id="webapp",
            secret="s3cret",
            grants=["authorization_code", "password", "refresh_token", "client_credentials"],
            redirect_uris=["http://example.com/cb"],
        )
    )
    store.add_user("alice", "wonderland", id=1)
    return store

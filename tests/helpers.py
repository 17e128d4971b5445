# Test helpers: request builders and an in-memory storage model.
# Created: 2026-10-19

from __future__ import annotations

import base64
from dataclasses import replace
from datetime import timedelta

from pocketoauth.models import AuthorizationCode, Client, Token, utcnow
from pocketoauth.request import Request

FORM = "application/x-www-form-urlencoded"


def make_request(body=None, query=None, headers=None, method="POST", form=True) -> Request:
    """Build a core Request; form-encoded POST unless told otherwise."""
    all_headers = dict(headers or {})
    if form:
        all_headers.setdefault("content-type", FORM)
    return Request(headers=all_headers, method=method, query=query or {}, body=body or {})


def basic_auth(client_id: str, client_secret: str) -> str:
    encoded = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
    return f"Basic {encoded}"


def future(seconds: int = 3600):
    return utcnow() + timedelta(seconds=seconds)


def past(seconds: int = 3600):
    return utcnow() - timedelta(seconds=seconds)


class InMemoryModel:
    """Reference storage model: dict-backed, coroutine methods throughout.

    Authorization codes and refresh tokens are removed on revocation, so a
    second redemption of either finds nothing.
    """

    def __init__(self):
        self.clients: dict[str, Client] = {}
        self.users: dict[str, tuple[str, dict]] = {}
        self.codes: dict[str, AuthorizationCode] = {}
        self.tokens: dict[str, Token] = {}
        self.refresh_index: dict[str, str] = {}

    def add_client(self, client: Client) -> Client:
        self.clients[client.id] = client
        return client

    def add_user(self, username: str, password: str, **attrs) -> dict:
        user = {"username": username, **attrs}
        self.users[username] = (password, user)
        return user

    async def get_client(self, client_id, client_secret):
        client = self.clients.get(client_id)
        if client is None:
            return None
        if client_secret is not None and client.secret != client_secret:
            return None
        return client

    async def get_user(self, username, password):
        entry = self.users.get(username)
        if entry is None or entry[0] != password:
            return None
        return entry[1]

    async def get_user_from_client(self, client):
        return {"username": f"client:{client.id}"}

    async def save_authorization_code(self, code, client, user):
        saved = replace(code, client=client, user=user)
        self.codes[saved.authorization_code] = saved
        return saved

    async def get_authorization_code(self, code):
        return self.codes.get(code)

    async def revoke_authorization_code(self, code):
        return self.codes.pop(code.authorization_code, None) is not None

    async def save_token(self, token, client, user):
        saved = replace(token, client=client, user=user)
        self.tokens[saved.access_token] = saved
        if saved.refresh_token:
            self.refresh_index[saved.refresh_token] = saved.access_token
        return saved

    async def get_access_token(self, access_token):
        return self.tokens.get(access_token)

    async def get_refresh_token(self, refresh_token):
        access_token = self.refresh_index.get(refresh_token)
        return self.tokens.get(access_token) if access_token else None

    async def revoke_token(self, token):
        access_token = self.refresh_index.pop(token.refresh_token, None)
        return self.tokens.pop(access_token, None) is not None if access_token else False

    async def verify_scope(self, token, scope):
        granted = set((token.scope or "").split())
        return set(scope.split()) <= granted

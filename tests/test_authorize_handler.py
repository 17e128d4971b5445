# Tests for the authorization endpoint handler.
# Created: 2026-10-19

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import pytest
from helpers import future, make_request

from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.handlers import AuthorizeHandler
from pocketoauth.models import Client, Token, utcnow
from pocketoauth.request import Response
from pocketoauth.response_types import CodeResponseType


def _authenticated_as(user):
    return SimpleNamespace(handle=AsyncMock(return_value={"user": user}))


def _handler(model, **options):
    options.setdefault("authorization_code_lifetime", 300)
    options.setdefault("authenticate_handler", _authenticated_as({"username": "alice"}))
    return AuthorizeHandler(model=model, **options)


def _params(**overrides):
    params = {"client_id": "webapp", "response_type": "code", "state": "foobar"}
    params.update(overrides)
    return {key: value for key, value in params.items() if value is not None}


def _location_query(response):
    return parse_qs(urlsplit(response.get("Location")).query)


class TestConstruction:
    def test_requires_authorization_code_lifetime(self, model):
        with pytest.raises(OAuthError, match="`authorization_code_lifetime`"):
            AuthorizeHandler(model=model)

    def test_requires_model(self):
        with pytest.raises(OAuthError, match="Missing parameter: `model`"):
            AuthorizeHandler(authorization_code_lifetime=300)

    def test_requires_save_authorization_code(self):
        model = SimpleNamespace(get_client=AsyncMock(), get_access_token=AsyncMock())
        with pytest.raises(OAuthError, match="`save_authorization_code\\(\\)`"):
            AuthorizeHandler(model=model, authorization_code_lifetime=300)

    def test_rejects_authenticate_handler_without_handle(self, model):
        with pytest.raises(OAuthError) as exc_info:
            AuthorizeHandler(
                model=model, authorization_code_lifetime=300, authenticate_handler=object()
            )
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    def test_default_authenticate_handler_needs_get_access_token(self):
        model = SimpleNamespace(get_client=AsyncMock(), save_authorization_code=AsyncMock())
        with pytest.raises(OAuthError, match="`get_access_token\\(\\)`"):
            AuthorizeHandler(model=model, authorization_code_lifetime=300)


class TestHandle:
    @pytest.mark.asyncio
    async def test_rejects_non_request(self, model):
        with pytest.raises(OAuthError, match="must be an instance of Request"):
            await _handler(model).handle({}, Response())

    @pytest.mark.asyncio
    async def test_issues_code_and_redirects(self, model):
        response = Response()
        code = await _handler(model).handle(
            make_request(_params(scope="read")), response
        )

        assert response.status == 302
        location = response.get("Location")
        assert location.startswith("http://example.com/cb?code=")
        assert _location_query(response) == {
            "code": [code.authorization_code],
            "state": ["foobar"],
        }

        stored = model.codes[code.authorization_code]
        assert stored.redirect_uri == "http://example.com/cb"
        assert stored.scope == "read"
        assert stored.client is model.clients["webapp"]
        assert stored.user == {"username": "alice"}
        remaining = stored.expires_at - utcnow()
        assert timedelta(seconds=298) < remaining <= timedelta(seconds=300)

    @pytest.mark.asyncio
    async def test_parameters_from_query(self, model):
        response = Response()
        request = make_request(query=_params(), method="GET", form=False)
        await _handler(model).handle(request, response)
        assert "code" in _location_query(response)

    @pytest.mark.asyncio
    async def test_keeps_existing_redirect_query(self, model):
        model.add_client(
            Client(
                id="legacy",
                grants=["authorization_code"],
                redirect_uris=["http://example.com/cb?tenant=acme"],
            )
        )
        response = Response()
        await _handler(model).handle(make_request(_params(client_id="legacy")), response)
        query = _location_query(response)
        assert query["tenant"] == ["acme"]
        assert query["state"] == ["foobar"]

    @pytest.mark.asyncio
    async def test_model_generated_code(self, model):
        model.generate_authorization_code = AsyncMock(return_value="custom-code")
        response = Response()
        await _handler(model).handle(make_request(_params()), response)
        assert _location_query(response)["code"] == ["custom-code"]

    @pytest.mark.asyncio
    async def test_unsupported_response_type(self, model):
        model.save_authorization_code = AsyncMock()
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(
                make_request(_params(response_type="test")), response
            )

        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_RESPONSE_TYPE
        assert response.get("Location") == (
            "http://example.com/cb?error=unsupported_response_type"
            "&error_description=Unsupported%20response%20type%3A%20%60response_type%60"
            "%20is%20not%20supported&state=foobar"
        )
        model.save_authorization_code.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_response_type(self, model):
        response = Response()
        with pytest.raises(OAuthError, match="Missing parameter: `response_type`"):
            await _handler(model).handle(
                make_request(_params(response_type=None)), response
            )
        assert _location_query(response)["error"] == ["invalid_request"]

    @pytest.mark.asyncio
    async def test_access_denied(self, model):
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(
                make_request(_params(), query={"allowed": "false"}), response
            )
        assert exc_info.value.kind is ErrorKind.ACCESS_DENIED
        assert exc_info.value.message == "Access denied: user denied access to application"
        assert response.get("Location") is None

    @pytest.mark.asyncio
    async def test_allowed_is_read_from_query_only(self, model):
        response = Response()
        await _handler(model).handle(make_request(_params(allowed="false")), response)
        assert "code" in _location_query(response)

    @pytest.mark.asyncio
    async def test_unknown_client_is_not_redirected(self, model):
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(make_request(_params(client_id="nobody")), response)
        assert exc_info.value.kind is ErrorKind.INVALID_CLIENT
        assert exc_info.value.message == "Invalid client: client credentials are invalid"
        assert response.get("Location") is None

    @pytest.mark.asyncio
    async def test_missing_client_id(self, model):
        with pytest.raises(OAuthError, match="Missing parameter: `client_id`"):
            await _handler(model).handle(make_request(_params(client_id=None)), Response())

    @pytest.mark.asyncio
    async def test_client_without_code_grant(self, model):
        model.add_client(Client(id="svc", grants=["client_credentials"]))
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(make_request(_params(client_id="svc")), Response())
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED_CLIENT

    @pytest.mark.asyncio
    async def test_client_without_redirect_uris(self, model):
        model.add_client(Client(id="bare", grants=["authorization_code"]))
        with pytest.raises(OAuthError, match="missing client `redirect_uri`"):
            await _handler(model).handle(make_request(_params(client_id="bare")), Response())

    @pytest.mark.asyncio
    async def test_redirect_uri_must_be_registered(self, model):
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(
                make_request(_params(redirect_uri="http://evil.com/cb")), response
            )
        assert exc_info.value.message == (
            "Invalid client: `redirect_uri` does not match client value"
        )
        assert response.get("Location") is None

    @pytest.mark.asyncio
    async def test_malformed_redirect_uri(self, model):
        with pytest.raises(OAuthError, match="`redirect_uri` is not a valid URI"):
            await _handler(model).handle(
                make_request(_params(redirect_uri="not-a-uri")), Response()
            )

    @pytest.mark.asyncio
    async def test_missing_state(self, model):
        response = Response()
        with pytest.raises(OAuthError, match="Missing parameter: `state`"):
            await _handler(model).handle(make_request(_params(state=None)), response)
        query = _location_query(response)
        assert query["error"] == ["invalid_request"]
        assert "state" not in query

    @pytest.mark.asyncio
    async def test_allow_empty_state(self, model):
        response = Response()
        await _handler(model, allow_empty_state=True).handle(
            make_request(_params(state=None)), response
        )
        query = _location_query(response)
        assert "code" in query
        assert "state" not in query

    @pytest.mark.asyncio
    async def test_invalid_state(self, model):
        with pytest.raises(OAuthError, match="Invalid parameter: `state`"):
            await _handler(model).handle(make_request(_params(state="ø")), Response())

    @pytest.mark.asyncio
    async def test_rejected_scope_redirects_with_state(self, model):
        model.validate_scope = AsyncMock(return_value=False)
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(make_request(_params(scope="admin")), response)
        assert exc_info.value.kind is ErrorKind.INVALID_SCOPE
        query = _location_query(response)
        assert query["error"] == ["invalid_scope"]
        assert query["state"] == ["foobar"]
        assert model.codes == {}

    @pytest.mark.asyncio
    async def test_empty_scope_is_absent(self, model):
        code = await _handler(model).handle(make_request(_params(scope="")), Response())
        assert code.scope is None

    @pytest.mark.asyncio
    async def test_malformed_scope(self, model):
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(make_request(_params(scope='"quoted"')), Response())
        assert exc_info.value.kind is ErrorKind.INVALID_SCOPE
        assert exc_info.value.message == "Invalid parameter: `scope`"

    @pytest.mark.asyncio
    async def test_storage_failure_becomes_server_error(self, model):
        failure = RuntimeError("database unavailable")
        model.save_authorization_code = AsyncMock(side_effect=failure)
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await _handler(model).handle(make_request(_params()), response)

        assert exc_info.value.kind is ErrorKind.SERVER_ERROR
        assert exc_info.value.status == 503
        assert exc_info.value.__cause__ is failure
        query = _location_query(response)
        assert query["error"] == ["server_error"]
        assert query["error_description"] == ["database unavailable"]

    @pytest.mark.asyncio
    async def test_custom_response_types(self, model):
        class FragmentResponseType(CodeResponseType):
            def build_redirect_uri(self, redirect_uri):
                return f"{redirect_uri}#code={self.code}"

        handler = _handler(model, response_types={"fragment": FragmentResponseType})
        response = Response()
        code = await handler.handle(make_request(_params(response_type="fragment")), response)
        assert f"#code={code.authorization_code}" in response.get("Location")

        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params()), Response())
        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_RESPONSE_TYPE


class TestGetUser:
    @pytest.mark.asyncio
    async def test_custom_handler_without_user(self, model):
        handler = _handler(model, authenticate_handler=_authenticated_as(None))
        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params()), Response())
        assert exc_info.value.kind is ErrorKind.SERVER_ERROR
        assert exc_info.value.message == (
            "Server error: `handle()` did not return a `user` object"
        )

    @pytest.mark.asyncio
    async def test_custom_handler_returning_object(self, model):
        handler = _handler(
            model,
            authenticate_handler=SimpleNamespace(
                handle=lambda request, response: SimpleNamespace(user={"username": "bob"})
            ),
        )
        code = await handler.handle(make_request(_params()), Response())
        assert code.user == {"username": "bob"}

    @pytest.mark.asyncio
    async def test_bearer_token_authentication(self, model):
        await model.save_token(
            Token(access_token="user-token", access_token_expires_at=future()),
            model.clients["webapp"],
            {"username": "alice"},
        )
        handler = AuthorizeHandler(model=model, authorization_code_lifetime=300)
        request = make_request(_params(), headers={"Authorization": "Bearer user-token"})
        code = await handler.handle(request, Response())
        assert code.user == {"username": "alice"}

    @pytest.mark.asyncio
    async def test_unauthenticated_request(self, model):
        handler = AuthorizeHandler(model=model, authorization_code_lifetime=300)
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params()), response)
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED_REQUEST
        assert response.get("WWW-Authenticate") == 'Bearer realm="Service"'
        query = _location_query(response)
        assert query["error"] == ["unauthorized_request"]
        assert query["state"] == ["foobar"]

    @pytest.mark.asyncio
    async def test_failing_authenticate_handler_redirects(self, model):
        failure = RuntimeError("session store offline")
        model.save_authorization_code = AsyncMock()
        handler = _handler(
            model, authenticate_handler=SimpleNamespace(handle=AsyncMock(side_effect=failure))
        )
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params()), response)

        assert exc_info.value.kind is ErrorKind.SERVER_ERROR
        assert exc_info.value.__cause__ is failure
        assert response.get("Location").startswith("http://example.com/cb?error=server_error")
        assert _location_query(response)["state"] == ["foobar"]
        model.save_authorization_code.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_authentication_failure_wins_over_missing_state(self, model):
        handler = AuthorizeHandler(model=model, authorization_code_lifetime=300)
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params(state=None)), response)
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED_REQUEST
        query = _location_query(response)
        assert query["error"] == ["unauthorized_request"]
        assert "state" not in query

    @pytest.mark.asyncio
    async def test_client_failure_is_raised_even_if_user_fails(self, model):
        handler = AuthorizeHandler(model=model, authorization_code_lifetime=300)
        response = Response()
        with pytest.raises(OAuthError) as exc_info:
            await handler.handle(make_request(_params(client_id="nobody")), response)
        assert exc_info.value.kind is ErrorKind.INVALID_CLIENT
        assert response.get("Location") is None

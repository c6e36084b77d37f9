"""Tests for auth.py — ClientLogin, edit token and OAuth bearer handling."""

from unittest.mock import MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import FakeReader, make_config
from greader_sync.auth import AuthSession, AuthState
from greader_sync.errors import AuthError


def make_session(reader, **kwargs):
    config = kwargs.pop("config", None) or make_config()
    http = httpx.AsyncClient(transport=httpx.MockTransport(reader))
    return AuthSession(http, config, **kwargs)


class FakeTokenSource:
    def __init__(self, token=""):
        self.token = token
        self.login = MagicMock()

    def bearer(self):
        return self.token


# --- ClientLogin ---


@pytest.mark.asyncio
async def test_client_login_success(reader):
    session = make_session(reader)

    assert await session.ensure_login() is True

    assert session.state is AuthState.LOGGED_IN
    assert session.auth_header() == ("Authorization", "GoogleLogin auth=auth-1")
    request = reader.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/greader.php/accounts/ClientLogin"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {"Email": ["alice"], "Passwd": ["s3cret"]}


@pytest.mark.asyncio
async def test_credentials_are_percent_encoded(reader):
    session = make_session(reader, config=make_config(GREADER_PASSWORD="p&ss=word"))

    await session.ensure_login()

    assert b"Passwd=p%26ss%3Dword" in reader.requests[0].content


@pytest.mark.asyncio
async def test_login_happens_only_once(reader):
    session = make_session(reader)

    await session.ensure_login()
    await session.ensure_login()

    assert reader.count("/accounts/ClientLogin") == 1


@pytest.mark.asyncio
async def test_crlf_response_is_parsed(reader):
    reader.login_body = "SID=s\r\nAuth=token-2\r\n"
    session = make_session(reader)

    await session.ensure_login()

    assert session.auth_header()[1] == "GoogleLogin auth=token-2"


@pytest.mark.asyncio
@pytest.mark.parametrize("placeholder", ["NA", "unused", "none", "null"])
async def test_placeholder_auth_is_a_login_failure(reader, placeholder):
    reader.login_body = f"SID=sid\nAuth={placeholder}\n"
    session = make_session(reader)

    with pytest.raises(AuthError, match="No Auth token"):
        await session.client_login()

    assert session.state is AuthState.LOGGED_OUT
    assert session.auth_header()[1] == "GoogleLogin auth="


@pytest.mark.asyncio
async def test_sid_only_is_a_login_failure(reader):
    reader.login_body = "SID=sid\n"
    session = make_session(reader)

    assert await session.ensure_login() is False


@pytest.mark.asyncio
async def test_http_error_during_login(reader):
    reader.failing.add("/accounts/ClientLogin")
    reader.status_code = 403
    session = make_session(reader)

    with pytest.raises(AuthError, match="403"):
        await session.client_login()

    assert await session.ensure_login() is False


@pytest.mark.asyncio
async def test_transport_error_during_login():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    session = make_session(handler)

    assert await session.ensure_login() is False
    assert session.state is AuthState.LOGGED_OUT


# --- Edit token ---


@pytest.mark.asyncio
async def test_reedah_fetches_edit_token(reader):
    session = make_session(reader, config=make_config(GREADER_PROVIDER="reedah"))

    assert await session.ensure_login() is True

    assert session.edit_token == "edit-token"
    token_request = reader.requests[1]
    assert token_request.method == "GET"
    assert token_request.url.path == "/reader/api/0/token"
    assert token_request.headers["Authorization"] == "GoogleLogin auth=auth-1"


@pytest.mark.asyncio
async def test_edit_token_failure_clears_credentials(reader):
    reader.failing.add("/reader/api/0/token")
    session = make_session(reader, config=make_config(GREADER_PROVIDER="reedah"))

    assert await session.ensure_login() is False

    assert session.edit_token == ""
    assert session.auth_header()[1] == "GoogleLogin auth="


@pytest.mark.asyncio
async def test_freshrss_does_not_fetch_edit_token(reader):
    session = make_session(reader)

    await session.ensure_login()

    assert reader.count("/reader/api/0/token") == 0


# --- Credentials lifecycle ---


@pytest.mark.asyncio
async def test_clear_credentials_forces_new_login(reader):
    session = make_session(reader)
    await session.ensure_login()

    session.clear_credentials()
    session.clear_credentials()

    assert session.state is AuthState.LOGGED_OUT
    await session.ensure_login()
    assert reader.count("/accounts/ClientLogin") == 2


@pytest.mark.asyncio
async def test_unauthorized_clears_client_login_tokens(reader):
    session = make_session(reader)
    await session.ensure_login()

    session.handle_unauthorized()

    assert session.state is AuthState.LOGGED_OUT
    assert session.auth_header()[1] == "GoogleLogin auth="


# --- OAuth ---


INOREADER = {"GREADER_PROVIDER": "inoreader", "GREADER_URL": "", "GREADER_USERNAME": "", "GREADER_PASSWORD": ""}


@pytest.mark.asyncio
async def test_oauth_with_token(reader):
    session = make_session(reader, config=make_config(**INOREADER), token_source=FakeTokenSource("tok"))

    assert await session.ensure_login() is True

    assert session.auth_header() == ("Authorization", "Bearer tok")
    assert reader.requests == []


@pytest.mark.asyncio
async def test_oauth_without_token(reader):
    session = make_session(reader, config=make_config(**INOREADER), token_source=FakeTokenSource(""))

    assert await session.ensure_login() is False
    assert session.state is AuthState.LOGGED_OUT


@pytest.mark.asyncio
async def test_oauth_without_token_source(reader):
    session = make_session(reader, config=make_config(**INOREADER))

    assert await session.ensure_login() is False


def test_auth_failure_offers_relogin():
    source = FakeTokenSource("tok")
    notifier = MagicMock()
    session = make_session(FakeReader(), config=make_config(**INOREADER), token_source=source, notifier=notifier)

    session.handle_unauthorized("token expired")

    title, text, action = notifier.call_args[0]
    assert "authentication error" in title
    assert "token expired" in text
    action()
    source.login.assert_called_once()


def test_tokens_retrieved_stores_refresh_token():
    store = MagicMock()
    config = make_config(GREADER_ACCOUNT_ID=7, **INOREADER)
    session = make_session(FakeReader(), config=config, token_source=FakeTokenSource(), token_store=store)

    session.tokens_retrieved("refresh-1")
    session.tokens_retrieved("")

    store.assert_called_once_with(7, "refresh-1")


def test_tokens_not_stored_without_account():
    store = MagicMock()
    session = make_session(FakeReader(), config=make_config(**INOREADER), token_store=store)

    session.tokens_retrieved("refresh-1")

    store.assert_not_called()

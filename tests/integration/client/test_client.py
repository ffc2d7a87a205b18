from __future__ import annotations

import pytest
import requests

from zone01_profile.auth import EnvCredentials, StaticCredentials
from zone01_profile.client import (
    DASHBOARD_QUERY,
    DEFAULT_ENDPOINT,
    MalformedResponseError,
    MissingCredentialError,
    ProtocolError,
    QueryClient,
    TransportError,
)
from zone01_profile.filters import build_filter


def _client(session, token="tok-123", **kw):
    return QueryClient(StaticCredentials(token), session=session, **kw)


def test_bearer_token_and_body(make_session, respond, folders_payload):
    session = make_session(respond(folders_payload))

    records = _client(session).fetch_folder_records()

    assert len(records) == 3
    call = session.calls[0]
    assert call["url"] == DEFAULT_ENDPOINT
    assert call["headers"]["Authorization"] == "Bearer tok-123"
    assert call["json"]["variables"] == {}
    assert "xpTransactions" in call["json"]["query"]
    assert records[1].object.nearest_parent.type == "piscine"


def test_missing_token_fails_without_network(make_session):
    session = make_session()

    with pytest.raises(MissingCredentialError) as ei:
        _client(session, token="   ").fetch_folder_records()

    assert ei.value.stage == "credentials"
    assert session.calls == []


def test_env_credentials(monkeypatch, make_session, respond, folders_payload):
    monkeypatch.setenv("ZONE01_TEST_TOKEN", " env-tok ")
    creds = EnvCredentials("ZONE01_TEST_TOKEN")
    session = make_session(respond(folders_payload))

    QueryClient(creds, session=session).fetch_folder_records()

    assert session.calls[0]["headers"]["Authorization"] == "Bearer env-tok"
    creds.logout()
    assert not creds.is_authenticated()


def test_dashboard_sends_filter_as_variable(make_session, respond, dashboard_payload):
    session = make_session(respond(dashboard_payload))
    flt = build_filter("div-01")

    payload = _client(session).fetch_dashboard(flt, progress_limit=5)

    variables = session.calls[0]["json"]["variables"]
    assert variables == {"where": flt.to_where(), "progressLimit": 5}
    assert session.calls[0]["json"]["query"] == DASHBOARD_QUERY

    assert payload.user_id == 42
    assert payload.login == "learner"
    assert [t.amount for t in payload.transactions] == [25000, 5000, 9000]
    assert payload.transactions[1].created_at.tzinfo is not None
    assert [s.type for s in payload.skills] == ["skill_go", "skill_js"]
    assert payload.progresses[0].grade == 1.2


def test_http_error_status(make_session, respond):
    session = make_session(respond(None, status_code=401))

    with pytest.raises(TransportError) as ei:
        _client(session).fetch_folder_records()

    assert ei.value.status_code == 401
    assert ei.value.status == "transport: HTTP error (status=401)"


def test_network_failure_is_transport_error(make_session):
    session = make_session(requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError) as ei:
        _client(session).fetch_folder_records()

    assert ei.value.status_code is None
    assert "connection refused" in ei.value.status


def test_graphql_errors_surface_first_message(make_session, respond):
    session = make_session(respond({"errors": [{"message": "field 'user' not found"}, {"message": "other"}]}))

    with pytest.raises(ProtocolError) as ei:
        _client(session).fetch_folder_records()

    assert ei.value.status == "graphql: field 'user' not found"


def test_non_json_body(make_session, respond):
    session = make_session(respond(bad_json=True))

    with pytest.raises(MalformedResponseError):
        _client(session).fetch_folder_records()


@pytest.mark.parametrize(
    "payload",
    [
        {"data": {"user": []}},
        {"data": {}},
        {"data": None},
        {"data": {"user": [{"xpTransactions": "nope"}]}},
        {"data": {"user": [{"xpTransactions": [{"amount": -3, "path": "/athens/x/y"}]}]}},
    ],
)
def test_malformed_payloads(make_session, respond, payload):
    session = make_session(respond(payload))

    with pytest.raises(MalformedResponseError):
        _client(session).fetch_folder_records()


def test_logger_receives_progress(make_session, respond, folders_payload):
    lines = []
    session = make_session(respond(folders_payload))

    _client(session, logger=lines.append).fetch_folder_records()

    assert lines == ["fetching folder records", "fetched 3 folder records"]

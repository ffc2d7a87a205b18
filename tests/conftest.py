import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from zone01_profile.core import ObjectRef, ParentRef, SkillRecord, TransactionRecord  # noqa: E402


T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def project_root() -> Path:
    return ROOT


@pytest.fixture()
def make_tx():
    """Build a TransactionRecord; ``day`` is an offset from a fixed origin."""

    def _make(amount=1000, *, day=0.0, path="/athens/div-01/project", parent_type="module", name="project", id=None):
        obj = ObjectRef(
            name=name,
            type="project",
            parents=(ParentRef(name="parent", type=parent_type),) if parent_type else (),
        )
        return TransactionRecord(
            id=id,
            amount=amount,
            created_at=T0 + timedelta(days=day),
            path=path,
            object=obj,
        )

    return _make


@pytest.fixture()
def skill_records():
    return [
        SkillRecord(type="skill_js", amount=40),
        SkillRecord(type="skill_go", amount=70),
    ]


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    """Stands in for requests.Session; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture()
def make_session():
    def _make(*replies):
        return FakeSession(replies)

    return _make


@pytest.fixture()
def respond():
    def _respond(payload=None, status_code=200, bad_json=False):
        return FakeResponse(payload, status_code=status_code, bad_json=bad_json)

    return _respond


def _tx_json(id, amount, created, path, name, parent_type):
    return {
        "id": id,
        "amount": amount,
        "createdAt": created,
        "path": path,
        "object": {
            "name": name,
            "type": "exercise",
            "parents": [{"parent": {"name": "parent", "type": parent_type}}],
        },
    }


@pytest.fixture()
def folders_payload():
    return {
        "data": {
            "user": [
                {
                    "xpTransactions": [
                        _tx_json(None, 0, None, "/athens/div-01/go-reloaded", "go-reloaded", "module"),
                        _tx_json(None, 0, None, "/athens/div-01/piscine-js/quest-01/ex1", "ex1", "piscine"),
                        _tx_json(None, 0, None, "/athens/div-01/rust/ex1", "ex1", "project"),
                    ]
                }
            ]
        }
    }


@pytest.fixture()
def dashboard_payload():
    return {
        "data": {
            "user": [
                {
                    "id": 42,
                    "login": "learner",
                    "xpTransactions": [
                        _tx_json(3, 25000, "2024-03-05T10:00:00+00:00", "/athens/div-01/ascii-art", "ascii-art", "module"),
                        _tx_json(2, 5000, "2024-03-04T10:00:00Z", "/athens/div-01/go-reloaded", "go-reloaded", "module"),
                        _tx_json(1, 9000, "2024-02-01T10:00:00Z", "/athens/div-01/checkpoint/ex", "ex", "exam"),
                    ],
                    "skillTransactions": [
                        {"type": "skill_go", "amount": 70},
                        {"type": "skill_js", "amount": 40},
                    ],
                    "progresses": [
                        {
                            "id": 7,
                            "grade": 1.2,
                            "updatedAt": "2024-03-05T10:00:00Z",
                            "object": {"name": "ascii-art", "type": "project"},
                        }
                    ],
                }
            ]
        }
    }

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

import requests

from zone01_profile.auth import CredentialProvider
from zone01_profile.core import (
    DashboardPayload,
    ProgressRecord,
    SkillRecord,
    TransactionRecord,
)
from zone01_profile.filters import TransactionFilter


DEFAULT_ENDPOINT = "https://zone01.gr/api/graphql-engine/v1/graphql"
DEFAULT_TIMEOUT_S = 30.0


class QueryError(RuntimeError):
    """Structured query-service failure.

    Attributes
    ----------
    stage:
        Machine-readable stage identifier (e.g. "transport").
    reason:
        Failure summary suitable for a status string.
    context:
        Optional extra context appended to the status.
    """

    stage = "query"

    def __init__(self, reason: str, *, context: Optional[str] = None) -> None:
        self.reason = reason
        self.context = context
        super().__init__(self.status)

    @property
    def status(self) -> str:
        if self.context:
            return f"{self.stage}: {self.reason} ({self.context})"
        return f"{self.stage}: {self.reason}"


class MissingCredentialError(QueryError):
    stage = "credentials"


class TransportError(QueryError):
    stage = "transport"

    def __init__(self, reason: str, *, status_code: Optional[int] = None, context: Optional[str] = None) -> None:
        self.status_code = status_code
        if status_code is not None and context is None:
            context = f"status={status_code}"
        super().__init__(reason, context=context)


class ProtocolError(QueryError):
    stage = "graphql"


class MalformedResponseError(QueryError):
    stage = "response"


# ---------------------------------------------------------------------------
# Query shapes
# ---------------------------------------------------------------------------

FOLDERS_QUERY = """
query FolderTransactions {
  user {
    xpTransactions: transactions(where: {type: {_eq: "xp"}}) {
      path
      object {
        name
        type
        parents {
          parent {
            name
            type
          }
        }
      }
    }
  }
}
"""

DASHBOARD_QUERY = """
query Dashboard($where: transaction_bool_exp!, $progressLimit: Int!) {
  user {
    id
    login
    xpTransactions: transactions(where: $where, order_by: {createdAt: desc}) {
      id
      amount
      createdAt
      path
      object {
        name
        type
        parents {
          parent {
            name
            type
          }
        }
      }
    }
    skillTransactions: transactions(
      where: {type: {_like: "skill_%"}}
      distinct_on: [type]
      order_by: [{type: asc}, {amount: desc}]
    ) {
      type
      amount
    }
    progresses(order_by: {updatedAt: desc}, limit: $progressLimit) {
      id
      grade
      updatedAt
      object {
        name
        type
      }
    }
  }
}
"""


def _parse_list(raw: Any, parse: Callable[[Mapping[str, Any]], Any], ctx: str) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedResponseError(f"{ctx} is not a list")
    out: List[Any] = []
    for i, item in enumerate(raw):
        try:
            out.append(parse(item))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"invalid {ctx} entry", context=f"index={i}: {e}") from e
    return out


class QueryClient:
    """
    Thin client for the platform's GraphQL endpoint.

    The bearer token is pulled from ``credentials`` on every call; a missing
    token fails before anything touches the network.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.credentials = credentials
        self.endpoint = endpoint
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.logger = logger

    def _log(self, msg: str) -> None:
        if self.logger:
            self.logger(msg)

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = self.credentials.get_token()
        if not token:
            raise MissingCredentialError("no authentication token found")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        body = {"query": query, "variables": variables or {}}

        try:
            r = self.session.post(self.endpoint, json=body, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise TransportError("request failed", context=str(e)) from e

        if not r.ok:
            raise TransportError("HTTP error", status_code=r.status_code)

        try:
            payload = r.json()
        except ValueError as e:
            raise MalformedResponseError("response is not JSON") from e

        if not isinstance(payload, dict):
            raise MalformedResponseError("response is not an object")

        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else None
            raise ProtocolError(str(message or "GraphQL error"))

        data = payload.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("response has no data")
        return data

    @staticmethod
    def _first_user(data: Mapping[str, Any]) -> Mapping[str, Any]:
        users = data.get("user")
        if not isinstance(users, list) or not users or not isinstance(users[0], dict):
            raise MalformedResponseError("no user record")
        return users[0]

    def fetch_folder_records(self) -> List[TransactionRecord]:
        self._log("fetching folder records")
        user = self._first_user(self.execute(FOLDERS_QUERY))
        records = _parse_list(user.get("xpTransactions"), TransactionRecord.from_json, "xpTransactions")
        self._log(f"fetched {len(records)} folder records")
        return records

    def fetch_dashboard(self, flt: TransactionFilter, *, progress_limit: int = 3) -> DashboardPayload:
        self._log(f"fetching dataset for '{flt.category}'")
        data = self.execute(DASHBOARD_QUERY, {"where": flt.to_where(), "progressLimit": progress_limit})
        user = self._first_user(data)

        payload = DashboardPayload(
            user_id=user.get("id"),
            login=str(user.get("login") or ""),
            transactions=tuple(_parse_list(user.get("xpTransactions"), TransactionRecord.from_json, "xpTransactions")),
            skills=tuple(_parse_list(user.get("skillTransactions"), SkillRecord.from_json, "skillTransactions")),
            progresses=tuple(_parse_list(user.get("progresses"), ProgressRecord.from_json, "progresses")),
        )
        self._log(
            f"fetched {len(payload.transactions)} xp, {len(payload.skills)} skills, "
            f"{len(payload.progresses)} progresses"
        )
        return payload

"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides an in-memory stand-in for the
Supabase client covering the query builder calls the repositories make.
"""

from __future__ import annotations

import copy
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def _comparable(value: Any) -> Any:
    """Compare ISO timestamps as instants, everything else as-is."""

    if isinstance(value, str) and "T" in value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        if parsed.tzinfo is not None:
            return parsed
    return value


class FakeQuery:
    """Chainable builder mimicking postgrest's select / insert / update / delete."""

    def __init__(self, store: "FakeSupabase", table: str) -> None:
        self._store = store
        self._table = table
        self._action = "select"
        self._payload: Any = None
        self._conditions: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._negate_next = False

    # -- actions --------------------------------------------------------

    def select(self, *columns: str, **kwargs: Any) -> "FakeQuery":
        self._action = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._action = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    # -- filters --------------------------------------------------------

    def _add(self, predicate: Callable[[Dict[str, Any]], bool]) -> "FakeQuery":
        if self._negate_next:
            self._negate_next = False
            self._conditions.append(lambda row: not predicate(row))
        else:
            self._conditions.append(predicate)
        return self

    def _compare(self, field: str, value: Any, op: Callable[[Any, Any], bool]) -> "FakeQuery":
        def predicate(row: Dict[str, Any]) -> bool:
            current = row.get(field)
            if current is None:
                return False
            return op(_comparable(current), _comparable(value))

        return self._add(predicate)

    def eq(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a == b)

    def neq(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a != b)

    def lt(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a < b)

    def lte(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a <= b)

    def gt(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a > b)

    def gte(self, field: str, value: Any) -> "FakeQuery":
        return self._compare(field, value, lambda a, b: a >= b)

    def in_(self, field: str, values: List[Any]) -> "FakeQuery":
        return self._add(lambda row: row.get(field) in list(values))

    def contains(self, field: str, values: List[Any]) -> "FakeQuery":
        return self._add(
            lambda row: isinstance(row.get(field), list) and all(v in row[field] for v in values)
        )

    def is_(self, field: str, value: str) -> "FakeQuery":
        assert value == "null"
        return self._add(lambda row: row.get(field) is None)

    @property
    def not_(self) -> "FakeQuery":
        self._negate_next = True
        return self

    def order(self, field: str, desc: bool = False) -> "FakeQuery":
        self._order = (field, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    # -- execution ------------------------------------------------------

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self._store.tables.setdefault(self._table, [])
        return [row for row in rows if all(cond(row) for cond in self._conditions)]

    def execute(self) -> SimpleNamespace:
        self._store.maybe_fail(self._table, self._action)
        self._store.calls.append((self._table, self._action))

        if self._action == "insert":
            rows = self._store.tables.setdefault(self._table, [])
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                now = self._store.tick()
                row = {"id": str(uuid4()), **copy.deepcopy(payload), "created_at_utc": now, "updated_at_utc": now}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, error=None)

        if self._action == "update":
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self._payload))
                row["updated_at_utc"] = self._store.tick()
                updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated, error=None)

        if self._action == "delete":
            matched = self._matching()
            rows = self._store.tables.setdefault(self._table, [])
            self._store.tables[self._table] = [row for row in rows if row not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), error=None)

        result = self._matching()
        if self._order is not None:
            field, desc = self._order
            present = [row for row in result if row.get(field) is not None]
            missing = [row for row in result if row.get(field) is None]
            present.sort(key=lambda row: _comparable(row[field]), reverse=desc)
            result = present + missing
        if self._limit is not None:
            result = result[: self._limit]
        return SimpleNamespace(data=copy.deepcopy(result), error=None)


class FakeAuth:
    """Just enough of supabase.auth for the auth service and the login route."""

    def __init__(self, users: Optional[Dict[str, str]] = None, tokens: Optional[Dict[str, Any]] = None) -> None:
        self.users = users if users is not None else {"owner@example.com": "secret"}
        # access token -> user, shared by every client of one project
        self.tokens: Dict[str, Any] = tokens if tokens is not None else {}
        self.revoked: List[str] = []
        self.admin = SimpleNamespace(sign_out=self._admin_sign_out)
        self.session: Any = None
        self.listeners: List[Callable[[str, Any], None]] = []
        self.reset_requests: List[Tuple[str, Dict[str, Any]]] = []

    def sign_in_with_password(self, credentials: Dict[str, str]) -> SimpleNamespace:
        email, password = credentials["email"], credentials["password"]
        if self.users.get(email) != password:
            raise RuntimeError("Invalid login credentials")
        user = SimpleNamespace(id="user-1", email=email)
        token = f"token-{uuid4().hex}"
        self.tokens[token] = user
        self.session = SimpleNamespace(access_token=token, refresh_token="refresh", user=user)
        for listener in list(self.listeners):
            listener("SIGNED_IN", self.session)
        return SimpleNamespace(user=user, session=self.session)

    def sign_out(self) -> None:
        self.session = None
        for listener in list(self.listeners):
            listener("SIGNED_OUT", None)

    def _admin_sign_out(self, jwt: str, scope: str = "global") -> None:
        self.tokens.pop(jwt, None)
        self.revoked.append(jwt)

    def reset_password_for_email(self, email: str, options: Dict[str, Any]) -> None:
        self.reset_requests.append((email, options))

    def get_session(self) -> Any:
        return self.session

    def get_user(self, jwt: str) -> Optional[SimpleNamespace]:
        user = self.tokens.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)

    def on_auth_state_change(self, callback: Callable[[str, Any], None]) -> SimpleNamespace:
        self.listeners.append(callback)
        return SimpleNamespace(unsubscribe=lambda: self.listeners.remove(callback))


class FakeSupabase:
    """
    In-memory Supabase client.

    Rows are stored as the JSON the real client would send; `id` and the
    `created_at_utc` / `updated_at_utc` timestamps are assigned here the way
    the database defaults and update trigger assign them.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.auth = FakeAuth()
        self.session_clients: List[SimpleNamespace] = []
        self._failures: Dict[Tuple[str, str], List[Exception]] = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def session_client(self) -> SimpleNamespace:
        """A separate client of the same project: own session, shared users and tokens."""
        client = SimpleNamespace(auth=FakeAuth(users=self.auth.users, tokens=self.auth.tokens))
        self.session_clients.append(client)
        return client

    def tick(self) -> str:
        self._clock += timedelta(milliseconds=1)
        return self._clock.isoformat()

    def fail_next(self, table: str, action: str, error: Optional[Exception] = None) -> None:
        """Make the next `action` on `table` raise."""
        self._failures.setdefault((table, action), []).append(error or RuntimeError(f"{table} {action} failed"))

    def maybe_fail(self, table: str, action: str) -> None:
        pending = self._failures.get((table, action))
        if pending:
            raise pending.pop(0)

    def writes(self, table: str) -> List[str]:
        return [action for name, action in self.calls if name == table and action != "select"]


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def services(supabase: FakeSupabase):
    from services.container import build_services

    return build_services(supabase, session_client_factory=supabase.session_client)

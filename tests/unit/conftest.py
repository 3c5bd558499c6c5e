from __future__ import annotations

import os

# Settings are read when src.app.config is first imported
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import copy
from types import SimpleNamespace
from typing import Any, Optional
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError


def _api_error(message: str) -> APIError:
    return APIError({"message": message, "code": "500", "hint": None, "details": None})


class FakeQuery:
    """Records a PostgREST-style call chain and runs it against in-memory rows."""

    def __init__(self, store: "FakeSupabase", table: str) -> None:
        self._store = store
        self._table = table
        self._filters: list[tuple[str, str, Any]] = []
        self._limit: Optional[int] = None
        self._action = "select"
        self._payload: Any = None
        self._on_conflict = "id"

    def select(self, *_columns: str) -> "FakeQuery":
        self._action = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._action, self._payload = "insert", payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "id") -> "FakeQuery":
        self._action, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._action, self._payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("eq", column, value))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("gte", column, value))
        return self

    def lt(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("lt", column, value))
        return self

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        self._filters.append(("in", column, list(values)))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        for op, column, value in self._filters:
            current = row.get(column)
            if op == "eq" and current != value:
                return False
            if op == "gte" and (current is None or current < value):
                return False
            if op == "lt" and (current is None or current >= value):
                return False
            if op == "in" and current not in value:
                return False
        return True

    def execute(self) -> SimpleNamespace:
        self._store.calls.append((self._table, self._action, list(self._filters)))
        if self._table in self._store.failing_tables:
            raise _api_error(f"{self._table} unavailable")

        rows = self._store.tables.setdefault(self._table, [])

        if self._action == "select":
            found = [copy.deepcopy(row) for row in rows if self._matches(row)]
            if self._limit is not None:
                found = found[: self._limit]
            return SimpleNamespace(data=found)

        if self._action == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows))

        if self._action == "upsert":
            data = copy.deepcopy(self._payload)
            for row in rows:
                if row.get(self._on_conflict) == data.get(self._on_conflict):
                    row.update(data)
                    return SimpleNamespace(data=[copy.deepcopy(row)])
            rows.append(data)
            return SimpleNamespace(data=[copy.deepcopy(data)])

        if self._action == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self._payload))
                    changed.append(copy.deepcopy(row))
            return SimpleNamespace(data=changed)

        kept, removed = [], []
        for row in rows:
            (removed if self._matches(row) else kept).append(row)
        self._store.tables[self._table] = kept
        return SimpleNamespace(data=removed)


class FakeAdminAuth:
    def __init__(self, auth: "FakeAuth") -> None:
        self._auth = auth

    def sign_out(self, token: str) -> None:
        if token not in self._auth.tokens:
            raise RuntimeError("Invalid token")
        del self._auth.tokens[token]


class FakeAuth:
    """Minimal GoTrue double: accounts, bearer tokens and sent verification emails."""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.resent: list[str] = []
        self.fail_resend = False
        self.admin = FakeAdminAuth(self)

    def add_account(
        self,
        email: str,
        password: str = "secret123",
        verified: bool = True,
        user_id: Optional[str] = None,
        token: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SimpleNamespace:
        user = SimpleNamespace(
            id=user_id or str(uuid4()),
            email=email,
            email_confirmed_at="2024-01-01T00:00:00Z" if verified else None,
            user_metadata=metadata or {},
        )
        self.accounts[email] = {"password": password, "user": user}
        if token:
            self.tokens[token] = email
        return user

    def _session_for(self, email: str) -> SimpleNamespace:
        token = f"token-{uuid4().hex}"
        self.tokens[token] = email
        return SimpleNamespace(access_token=token, refresh_token=f"refresh-{token}")

    def sign_in_with_password(self, credentials: dict[str, str]) -> SimpleNamespace:
        account = self.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        return SimpleNamespace(user=account["user"], session=self._session_for(credentials["email"]))

    def sign_up(self, credentials: dict[str, Any]) -> SimpleNamespace:
        email = credentials["email"]
        if email in self.accounts:
            raise RuntimeError("User already registered")
        meta = credentials.get("options", {}).get("data", {})
        user = self.add_account(email, credentials["password"], verified=False, metadata=meta)
        self.resent.append(email)
        return SimpleNamespace(user=user, session=self._session_for(email))

    def resend(self, payload: dict[str, str]) -> None:
        if self.fail_resend:
            raise RuntimeError("Email rate limit exceeded")
        self.resent.append(payload["email"])

    def get_user(self, token: str) -> Optional[SimpleNamespace]:
        email = self.tokens.get(token)
        if email is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.accounts[email]["user"])


class FakeSupabase:
    """In-memory stand-in for supabase.Client covering the calls the app makes."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.failing_tables: set[str] = set()
        self.calls: list[tuple[str, str, list[tuple[str, str, Any]]]] = []
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def calls_to(self, table: str, action: str = "select") -> int:
        return sum(1 for name, act, _ in self.calls if name == table and act == action)


@pytest.fixture
def supa() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def seeded(supa: FakeSupabase) -> FakeSupabase:
    supa.tables["users"] = [
        {"id": "u-admin", "email": "admin@example.com", "name": "Ada Admin", "role": "admin",
         "createdAt": "2024-01-01T10:00:00Z"},
        {"id": "u-alice", "email": "alice@example.com", "name": "Alice", "role": "user",
         "createdAt": "2024-02-01T10:00:00Z"},
        {"id": "u-andre", "email": "andre@example.com", "name": "Andre", "role": "user",
         "createdAt": {"seconds": 1706781600}},
        {"id": "u-bob", "email": "bob@example.com", "name": "Bob", "role": "user"},
    ]
    supa.tables["recipes"] = [
        {"id": "r-1", "title": "Pancakes", "creatorId": "u-alice", "source": "manual",
         "tags": ["Breakfast"], "stats": {"views": 10, "likes": 2, "saves": 1}, "invites": []},
        {"id": "r-2", "title": "Lasagna", "creatorId": "u-alice", "source": "scraped",
         "sourceUrl": "https://example.com/lasagna", "invites": ["friend@example.com"]},
        {"id": "r-3", "title": "Tacos", "creatorId": "u-bob", "source": "imported"},
    ]
    supa.auth.add_account("admin@example.com", user_id="u-admin", token="admin-token")
    supa.auth.add_account("alice@example.com", user_id="u-alice", token="alice-token")
    supa.auth.add_account("bob@example.com", user_id="u-bob", token="bob-token", verified=False)
    return supa

"""Shared test fixtures.

Provides an in-memory stand-in for the Supabase client covering the query
builder calls the services make, plus the store rules the API relies on:
unique constraints, the rating aggregate trigger and skill delete cascades.
Auth is replaced through ``app.dependency_overrides``.
"""

import re
import uuid
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

BASE_TIME = datetime(2025, 7, 12, 9, 0, tzinfo=timezone.utc)

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "profiles": {
        "location": None, "bio": None, "avatar_url": None, "is_public": True, "is_banned": False,
        "availability": [], "average_rating": 0.0, "successful_swaps": 0, "updated_at": None,
    },
    "user_roles": {"role": "user"},
    "skills": {"description": None, "is_offering": True, "is_approved": False, "updated_at": None},
    "skill_requests": {"message": None, "status": "pending", "updated_at": None},
    "messages": {"is_read": False},
    "ratings": {"feedback": None},
    "admin_messages": {"is_active": True},
}

# Unique constraints as (columns, row predicate for partial indexes)
UNIQUE: Dict[str, List[tuple]] = {
    "profiles": [(("user_id",), None)],
    "user_roles": [(("user_id",), None)],
    "ratings": [(("request_id", "rater_id"), None)],
    "skill_requests": [
        (("requester_id", "provider_id", "offered_skill_id", "wanted_skill_id"),
         lambda r: r.get("status") == "pending"),
    ],
}


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.ordering: List[tuple] = []
        self.bounds: Optional[tuple] = None
        self.max_rows: Optional[int] = None
        self.single_row = False

    # Verbs

    def select(self, *columns, **kwargs):
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def upsert(self, payload, on_conflict: str = "id"):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    # Filters and modifiers

    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) >= value)
        return self

    def ilike(self, column, pattern: str):
        regex = re.compile(
            "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$", re.IGNORECASE | re.DOTALL
        )
        self.filters.append(lambda r: r.get(column) is not None and bool(regex.match(str(r.get(column)))))
        return self

    def or_(self, expression: str):
        clauses = []
        for clause in expression.split(","):
            column, operator, value = clause.split(".", 2)
            assert operator == "eq", f"unsupported or_ operator {operator}"
            clauses.append((column, value))
        self.filters.append(lambda r: any(str(r.get(c)) == v for c, v in clauses))
        return self

    def order(self, column, desc: bool = False):
        self.ordering.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.bounds = (start, end)
        return self

    def limit(self, count: int):
        self.max_rows = count
        return self

    def maybe_single(self):
        self.single_row = True
        return self

    # Execution

    def _matching(self) -> List[Dict[str, Any]]:
        return [r for r in self.db.tables[self.table] if all(f(r) for f in self.filters)]

    def execute(self):
        if self.op == "insert":
            return FakeResponse(self.db._insert(self.table, self.payload))
        if self.op == "upsert":
            return FakeResponse(self.db._upsert(self.table, self.payload, self.on_conflict))
        if self.op == "update":
            return FakeResponse(self.db._update(self.table, self._matching(), self.payload))
        if self.op == "delete":
            return FakeResponse(self.db._delete(self.table, self._matching()))

        rows = [dict(r) for r in self._matching()]
        for column, desc in reversed(self.ordering):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self.bounds is not None:
            rows = rows[self.bounds[0]:self.bounds[1] + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        if self.single_row:
            return FakeResponse(rows[0]) if rows else None
        return FakeResponse(rows)


class FakeSupabase:
    """Just enough of supabase.Client for the services under test."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in DEFAULTS}
        self.clock = 0
        self.storage = MagicMock()
        self.auth = MagicMock()

    def table(self, name: str) -> FakeQuery:
        self.tables.setdefault(name, [])
        return FakeQuery(self, name)

    def _now(self) -> str:
        self.clock += 1
        return (BASE_TIME + timedelta(seconds=self.clock)).isoformat()

    def _check_unique(self, table: str, candidate: Dict[str, Any], ignore: Optional[Dict[str, Any]] = None):
        for columns, predicate in UNIQUE.get(table, []):
            if predicate and not predicate(candidate):
                continue
            for row in self.tables[table]:
                if row is ignore or (predicate and not predicate(row)):
                    continue
                if all(row.get(c) == candidate.get(c) for c in columns):
                    raise APIError({
                        "code": "23505",
                        "message": f"duplicate key value violates unique constraint on {table}",
                        "details": None,
                        "hint": None,
                    })

    def _insert(self, table: str, payload) -> List[Dict[str, Any]]:
        created = []
        for item in (payload if isinstance(payload, list) else [payload]):
            row = {**DEFAULTS.get(table, {}), **item}
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", self._now())
            self._check_unique(table, row)
            self.tables[table].append(row)
            created.append(dict(row))
            if table == "ratings":
                self._recompute_profile_stats(row["rated_id"])
        return created

    def _upsert(self, table: str, payload, on_conflict: str) -> List[Dict[str, Any]]:
        keys = on_conflict.split(",")
        written = []
        for item in (payload if isinstance(payload, list) else [payload]):
            existing = next(
                (r for r in self.tables[table] if all(r.get(k) == item.get(k) for k in keys)), None
            )
            if existing is None:
                written.extend(self._insert(table, item))
            else:
                existing.update(item)
                written.append(dict(existing))
        return written

    def _update(self, table: str, rows: List[Dict[str, Any]], payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        updated = []
        for row in rows:
            self._check_unique(table, {**row, **payload}, ignore=row)
            row.update(payload)
            if "updated_at" in row:
                row["updated_at"] = self._now()
            updated.append(dict(row))
        return updated

    def _delete(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for row in rows:
            self.tables[table].remove(row)
        if table == "skills":
            skill_ids = {r["id"] for r in rows}
            orphaned = [
                r for r in self.tables["skill_requests"]
                if r["offered_skill_id"] in skill_ids or r["wanted_skill_id"] in skill_ids
            ]
            self._delete("skill_requests", orphaned)
        if table == "skill_requests":
            request_ids = {r["id"] for r in rows}
            self.tables["messages"] = [m for m in self.tables["messages"] if m["skill_request_id"] not in request_ids]
            self.tables["ratings"] = [x for x in self.tables["ratings"] if x["request_id"] not in request_ids]
        return [dict(r) for r in rows]

    def _recompute_profile_stats(self, rated_id: str) -> None:
        received = [r for r in self.tables["ratings"] if r["rated_id"] == rated_id]
        for profile in self.tables["profiles"]:
            if profile["user_id"] == rated_id:
                profile["average_rating"] = sum(r["rating"] for r in received) / len(received)
                profile["successful_swaps"] = len({r["request_id"] for r in received})

    # Seeding helpers

    def add_user(self, full_name: str, role: str = "user", **profile) -> str:
        user_id = str(uuid.uuid4())
        self._insert("profiles", {"user_id": user_id, "full_name": full_name, **profile})
        self._insert("user_roles", {"user_id": user_id, "role": role})
        return user_id

    def add_skill(self, user_id: str, title: str, category: str = "technology",
                  is_offering: bool = True, is_approved: bool = True) -> str:
        return self._insert("skills", [{
            "user_id": user_id, "title": title, "category": category,
            "is_offering": is_offering, "is_approved": is_approved,
        }])[0]["id"]

    def add_request(self, requester_id: str, provider_id: str, offered_skill_id: str,
                    wanted_skill_id: str, status: str = "pending") -> str:
        return self._insert("skill_requests", {
            "requester_id": requester_id, "provider_id": provider_id,
            "offered_skill_id": offered_skill_id, "wanted_skill_id": wanted_skill_id,
            "status": status,
        })[0]["id"]

    def row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.tables[table] if r["id"] == row_id), None)

    def profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.tables["profiles"] if r["user_id"] == user_id), None)


@pytest.fixture()
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def role_cache():
    """Fresh session role cache for each test."""
    from app.modules.auth.role_resolver import session_role_cache

    session_role_cache.clear()
    yield session_role_cache
    session_role_cache.clear()


@pytest.fixture()
def test_client(fake_db, role_cache, monkeypatch) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the in-memory Supabase fake."""
    from app.main import app
    from app.database.supabase_client import SupabaseClient

    monkeypatch.setattr(SupabaseClient, "_client", fake_db)
    monkeypatch.setattr(SupabaseClient, "_service_client", fake_db)
    monkeypatch.setattr(SupabaseClient, "for_user", staticmethod(lambda token: fake_db))
    app.state.limiter.enabled = False

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    app.state.limiter.enabled = True


@pytest.fixture()
def login_as(fake_db):
    """Make subsequent requests act as the given user with their stored role."""
    from app.main import app
    from app.core.dependencies import get_current_user_id, get_current_role, get_user_supabase
    from app.modules.auth.role_resolver import RoleResolution, ResolutionState

    def _login(user_id: str) -> dict:
        role_row = next((r for r in fake_db.tables["user_roles"] if r["user_id"] == user_id), None)
        user_data = {"id": user_id, "email": f"{user_id[:8]}@example.com", "user_metadata": {}}
        resolution = RoleResolution(
            user_id=user_id,
            role=role_row["role"] if role_row else "user",
            state=ResolutionState.RESOLVED,
        )
        app.dependency_overrides[get_current_user_id] = lambda: user_data
        app.dependency_overrides[get_current_role] = lambda: resolution
        app.dependency_overrides[get_user_supabase] = lambda: fake_db
        return user_data

    return _login


@pytest.fixture()
def swap(fake_db) -> Dict[str, str]:
    """Two users, each with one approved offered skill."""
    requester = fake_db.add_user("Rae Requester", location="Lisbon")
    provider = fake_db.add_user("Pat Provider", location="Porto")
    return {
        "requester": requester,
        "provider": provider,
        "offered_skill": fake_db.add_skill(requester, "Guitar", category="music"),
        "wanted_skill": fake_db.add_skill(provider, "Python", category="technology"),
    }

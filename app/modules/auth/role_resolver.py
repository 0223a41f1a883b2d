"""
Role resolution for authenticated sessions.

The signup trigger that writes a user's role row and the first read of that row
are not atomic, so a freshly registered user can briefly have no readable role.
Resolution therefore walks a small state machine:

    unresolved -> resolving (attempt 1..N) -> resolved(role)
                                           -> timed_out (default "user")

A resolved role is held in a server-side cache scoped to the session (keyed by a
hash of the access token). The cache is checked before entering ``resolving``,
cleared on sign-out, and invalidated per user whenever an admin changes a role.
"""

import asyncio
import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from supabase import Client

from app.config import settings

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"
DEFAULT_ROLE = ROLE_USER


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"


@dataclass
class RoleResolution:
    user_id: str
    role: str = DEFAULT_ROLE
    state: ResolutionState = ResolutionState.UNRESOLVED
    attempts: int = 0
    from_cache: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionRoleCache:
    """Thread-safe token-hash -> (user_id, role, expiry) map."""

    def __init__(self, ttl_seconds: int = 3600, max_size: int = 1000):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, str, float]] = {}

    def get(self, token: str) -> Optional[str]:
        key = _token_key(token)
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            _, role, expiry = entry
            if now >= expiry:
                del self._entries[key]
                return None
            return role

    def set(self, token: str, user_id: str, role: str) -> None:
        with self._lock:
            if len(self._entries) >= self.max_size:
                self._evict_expired()
            if len(self._entries) < self.max_size:
                self._entries[_token_key(token)] = (user_id, role, time.monotonic() + self.ttl_seconds)

    def clear_session(self, token: str) -> None:
        with self._lock:
            self._entries.pop(_token_key(token), None)

    def invalidate_user(self, user_id: str) -> int:
        """Drop every session entry belonging to user_id. Returns number dropped."""
        with self._lock:
            keys = [k for k, (uid, _, _) in self._entries.items() if uid == user_id]
            for k in keys:
                del self._entries[k]
        if keys:
            logger.debug(f"Invalidated {len(keys)} cached role(s) for user {user_id}")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for k in [k for k, (_, _, exp) in self._entries.items() if now >= exp]:
            del self._entries[k]


session_role_cache = SessionRoleCache(ttl_seconds=settings.session_cache_ttl)


class RoleResolver:
    def __init__(
        self,
        supabase: Client,
        service_supabase: Optional[Client] = None,
        cache: Optional[SessionRoleCache] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        allow_admin_signup: Optional[bool] = None,
    ):
        self.supabase = supabase
        self.service_supabase = service_supabase
        self.cache = cache if cache is not None else session_role_cache
        self.max_attempts = max_attempts if max_attempts is not None else settings.role_max_attempts
        self.retry_delay = retry_delay if retry_delay is not None else settings.role_retry_delay
        self.timeout = timeout if timeout is not None else settings.role_resolution_timeout
        self.allow_admin_signup = (
            allow_admin_signup if allow_admin_signup is not None else settings.allow_admin_signup
        )

    async def resolve(self, token: str, user_data: Dict[str, Any]) -> RoleResolution:
        """Resolve the caller's role, consulting the session cache first."""
        resolution = RoleResolution(user_id=user_data["id"])

        cached = self.cache.get(token)
        if cached is not None:
            resolution.role = cached
            resolution.state = ResolutionState.RESOLVED
            resolution.from_cache = True
            return resolution

        resolution.state = ResolutionState.RESOLVING
        try:
            resolution.role = await asyncio.wait_for(
                self._resolve_uncached(resolution, user_data), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Role resolution for {resolution.user_id} timed out after {self.timeout}s "
                f"({resolution.attempts} attempt(s)); defaulting to {DEFAULT_ROLE}"
            )
            resolution.role = DEFAULT_ROLE
            resolution.state = ResolutionState.TIMED_OUT
            return resolution

        resolution.state = ResolutionState.RESOLVED
        self.cache.set(token, resolution.user_id, resolution.role)
        logger.info(f"Resolved role {resolution.role} for user {resolution.user_id} after {resolution.attempts} attempt(s)")
        return resolution

    async def _resolve_uncached(self, resolution: RoleResolution, user_data: Dict[str, Any]) -> str:
        role = await self._fetch_with_retry(resolution)
        if role != ROLE_ADMIN and self._has_admin_intent(user_data):
            if not self.allow_admin_signup:
                logger.warning(f"Ignoring admin signup intent for user {resolution.user_id}: admin signup disabled")
            elif await asyncio.to_thread(self._redeem_admin_intent, resolution.user_id):
                return ROLE_ADMIN
        return role

    async def _fetch_with_retry(self, resolution: RoleResolution) -> str:
        while resolution.attempts < self.max_attempts:
            resolution.attempts += 1
            try:
                role = await asyncio.to_thread(self._fetch_role_row, resolution.user_id)
                return role or DEFAULT_ROLE
            except Exception as e:
                logger.warning(
                    f"Role fetch attempt {resolution.attempts}/{self.max_attempts} "
                    f"for user {resolution.user_id} failed: {e}"
                )
                if resolution.attempts < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)
        logger.error(f"Role fetch exhausted for user {resolution.user_id}; defaulting to {DEFAULT_ROLE}")
        return DEFAULT_ROLE

    def _fetch_role_row(self, user_id: str) -> Optional[str]:
        result = self.supabase.table("user_roles")\
            .select("role")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if result is None or not result.data:
            return None
        return result.data.get("role")

    @staticmethod
    def _has_admin_intent(user_data: Dict[str, Any]) -> bool:
        metadata = user_data.get("user_metadata") or {}
        return metadata.get("role") == ROLE_ADMIN

    def _redeem_admin_intent(self, user_id: str) -> bool:
        client = self.service_supabase or self.supabase
        try:
            client.table("user_roles")\
                .upsert({"user_id": user_id, "role": ROLE_ADMIN}, on_conflict="user_id")\
                .execute()
            logger.info(f"Redeemed admin signup intent for user {user_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to redeem admin signup intent for user {user_id}: {e}")
            return False

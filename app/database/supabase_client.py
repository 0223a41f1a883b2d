from supabase import create_client, Client
from postgrest.exceptions import APIError
from app.config import settings

# Postgres SQLSTATE raised for unique constraint violations
UNIQUE_VIOLATION = "23505"
# Raised by CHECK constraints and the request status guard
CHECK_VIOLATION = "23514"


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Only for role repair and storage writes."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def for_user(cls, token: str) -> Client:
        """Fresh client whose PostgREST calls carry the caller's JWT, so row-level policies apply."""
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.postgrest.auth(token)
        return client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def is_unique_violation(exc: Exception) -> bool:
    """True if a PostgREST error was caused by a unique constraint."""
    return isinstance(exc, APIError) and str(getattr(exc, "code", "")) == UNIQUE_VIOLATION


def is_check_violation(exc: Exception) -> bool:
    """True if the store refused a write as an invalid state (CHECK or status guard)."""
    return isinstance(exc, APIError) and str(getattr(exc, "code", "")) == CHECK_VIOLATION

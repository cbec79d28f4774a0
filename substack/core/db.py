# substack/core/db.py
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from substack.config import SUPABASE_URL, SUPABASE_KEY
from substack.core.errors import RemoteError
from substack.core.gateways import PersistenceGateway
from substack.utils.logger import get_logger

logger = get_logger(__name__)


def get_supabase_client() -> Client:
    """Returns a Supabase client built from the configured URL and key."""
    return create_client(SUPABASE_URL, SUPABASE_KEY)


def _apply_match(query, match: Optional[Dict[str, Any]]):
    for column, value in (match or {}).items():
        query = query.eq(column, value)
    return query


class SupabaseGateway(PersistenceGateway):
    """PersistenceGateway over Supabase tables. Client errors surface as RemoteError."""

    def __init__(self, supabase_client: Client):
        self.client = supabase_client

    def create(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.table(table).insert(record).execute()
        except Exception as e:
            logger.error(f"Supabase insert into '{table}' failed: {e}")
            raise RemoteError(f"insert into {table} failed: {e}") from e
        return response.data[0] if response.data else dict(record)

    def delete(self, table: str, match: Dict[str, Any]) -> None:
        if not match:
            # Unfiltered deletes are rejected by PostgREST anyway.
            raise RemoteError(f"refusing to delete from {table} without a filter")
        try:
            _apply_match(self.client.table(table).delete(), match).execute()
        except Exception as e:
            logger.error(f"Supabase delete from '{table}' {match} failed: {e}")
            raise RemoteError(f"delete from {table} failed: {e}") from e

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            response = _apply_match(self.client.table(table).select("*"), filters).execute()
        except Exception as e:
            logger.error(f"Supabase select from '{table}' failed: {e}")
            raise RemoteError(f"select from {table} failed: {e}") from e
        return response.data or []

    def update(self, table: str, match: Dict[str, Any], patch: Dict[str, Any]) -> None:
        try:
            _apply_match(self.client.table(table).update(patch), match).execute()
        except Exception as e:
            logger.error(f"Supabase update of '{table}' {match} failed: {e}")
            raise RemoteError(f"update of {table} failed: {e}") from e

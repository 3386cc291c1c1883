import os
import httpx
from typing import Dict, Any, List, Optional
from commercialx.utils.logger import get_logger

logger = get_logger("utils.supabase_client")


class SupabaseClient:
    """
    Lightweight client for the Supabase REST API, used to persist submitted listings.
    """
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None):
        self.url = url or os.environ.get("SUPABASE_URL")
        self.key = key or os.environ.get("SUPABASE_KEY")

        if not self.url or not self.key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")

        self.headers = {
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        if self.key:
            self.headers["apikey"] = self.key
            self.headers["Authorization"] = f"Bearer {self.key}"
        self.client = httpx.Client(base_url=self.url or "", headers=self.headers, timeout=30.0, transport=transport)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)

    def insert(self, table: str, rows: Any) -> List[Dict[str, Any]]:
        """
        Insert one row (dict) or several (list of dicts) and return what was stored.
        """
        try:
            response = self.client.post(f"/rest/v1/{table}", json=rows)
            response.raise_for_status()
            return response.json()
        except Exception as e:
            logger.error(f"Supabase insert failed on {table}: {e}")
            return []


_supabase: Optional[SupabaseClient] = None


def get_supabase() -> SupabaseClient:
    """Shared client, created on first use."""
    global _supabase
    if _supabase is None:
        _supabase = SupabaseClient()
    return _supabase


def set_supabase(client: Optional[SupabaseClient]) -> None:
    global _supabase
    _supabase = client

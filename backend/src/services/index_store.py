"""Persist scan reports into the Supabase-backed result index."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from supabase import Client, create_client

from ..scanner.errors import IndexStoreError
from ..scanner.pipeline import PLUGIN_CATEGORY, PLUGIN_NAME

logger = logging.getLogger(__name__)


@dataclass
class PluginResults:
    id: str
    data: Dict[str, Any]
    name: str = PLUGIN_NAME
    category: str = PLUGIN_CATEGORY

    def to_row(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "category": self.category, "data": self.data}


class IndexStore:
    """Upsert plugin results into a Supabase table keyed on ``id``.

    Example usage:
        store = IndexStore(settings.supabase_url, settings.supabase_key)
        store.upsert(PluginResults(id=scan_id, data=report.to_dict()))
    """

    def __init__(
        self,
        supabase_url: Optional[str],
        supabase_key: Optional[str],
        *,
        table: str = "plugin_results",
        client: Optional[Client] = None,
    ) -> None:
        """
        Args:
            supabase_url: Supabase project URL.
            supabase_key: Supabase service role key.
            table: Table receiving one row per scanned file.
            client: Pre-built client, mainly for tests.

        Raises:
            IndexStoreError: If credentials are missing or the client cannot be created.
        """
        self.table = table
        if client is not None:
            self.client = client
            return
        if not supabase_url or not supabase_key:
            raise IndexStoreError("Index store not configured: set SUPABASE_URL and SUPABASE_KEY.")
        try:
            self.client = create_client(supabase_url, supabase_key)
        except Exception as exc:
            raise IndexStoreError(f"Unable to connect to index store: {exc}") from exc

    def upsert(self, results: PluginResults) -> None:
        try:
            self.client.table(self.table).upsert(results.to_row(), on_conflict="id").execute()
        except Exception as exc:
            raise IndexStoreError(f"Failed to write results for {results.id}: {exc}") from exc
        logger.info("Stored %s results for %s in %s", results.name, results.id, self.table)

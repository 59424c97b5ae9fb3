from typing import Any, Dict, List, Optional
from supabase import AsyncClient
from config.config import SUPABASE_URL, SUPABASE_KEY
from utils.validation import filter_row
from utils.logging_setup import setup_logging

logger = setup_logging()

class ConnectorError(Exception):
    """Falha numa operação contra o Supabase."""

    def __init__(self, message: str, code: Optional[str] = None, hint: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint
        self.details = details

    def to_dict(self) -> Dict:
        return {"message": self.message, "code": self.code, "hint": self.hint}

class ConnectorNotConfigured(ConnectorError):
    pass

def _prefix(value: Optional[str], size: int) -> str:
    return f"{value[:size]}..." if value else "não definida"

class SupabaseConnector:
    """
    Thin wrapper around the async Supabase client for the leads, depoimentos
    and site_config tables.

    The client is built together with the connector, so a malformed URL or key
    shows up in `is_configured()` right away. Call `is_configured()` before any
    operation: when it is false the caller is expected to take the offline path
    instead of treating it as an error.
    """

    def __init__(self, url: Optional[str] = SUPABASE_URL, key: Optional[str] = SUPABASE_KEY, client: Optional[AsyncClient] = None):
        self.url = url
        self.key = key
        self._client = client
        self._client_error: Optional[str] = None
        logger.info(f"Supabase config: hasUrl={bool(url)}, hasKey={bool(key)}, urlPrefix={_prefix(url, 30)}")
        if not (url and key):
            logger.warning("Supabase não configurado, operando em modo offline")
        elif client is None:
            self._build_client()

    def _build_client(self) -> None:
        try:
            self._client = AsyncClient(self.url, self.key)
        except Exception as e:
            self._client_error = str(e)
            logger.error(f"Failed to create Supabase client: {str(e)}")

    def is_configured(self) -> bool:
        return bool(self.url and self.key) and self._client_error is None

    @property
    def url_prefix(self) -> str:
        return _prefix(self.url, 30)

    @property
    def key_prefix(self) -> str:
        return _prefix(self.key, 20)

    async def get_client(self) -> AsyncClient:
        if self._client_error:
            raise ConnectorNotConfigured(f"Cliente Supabase não inicializado: {self._client_error}")
        if not self.is_configured() or self._client is None:
            raise ConnectorNotConfigured("Supabase não configurado")
        return self._client

    def _error(self, table: str, operation: str, e: Exception) -> ConnectorError:
        message = getattr(e, "message", None) or str(e)
        logger.error(f"Supabase {operation} on {table} failed: {message}")
        return ConnectorError(
            message,
            code=getattr(e, "code", None),
            hint=getattr(e, "hint", None),
            details=getattr(e, "details", None),
        )

    async def query(self, table: str, filters: Optional[Dict] = None, order: Optional[str] = None, desc: bool = True, limit: Optional[int] = None, columns: str = "*") -> List[Dict]:
        client = await self.get_client()
        try:
            query = client.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order:
                query = query.order(order, desc=desc)
            if limit:
                query = query.limit(limit)
            response = await query.execute()
            logger.debug(f"Query {table} returned {len(response.data or [])} rows")
            return response.data or []
        except Exception as e:
            raise self._error(table, "query", e) from e

    async def insert(self, table: str, row: Dict) -> Dict:
        client = await self.get_client()
        valid_row = filter_row(table, row)
        try:
            response = await client.table(table).insert(valid_row).execute()
            logger.info(f"Inserted row into {table}")
            return response.data[0] if response.data else {}
        except Exception as e:
            raise self._error(table, "insert", e) from e

    async def update(self, table: str, record_id: Any, patch: Dict) -> Dict:
        client = await self.get_client()
        valid_patch = filter_row(table, patch)
        try:
            response = await client.table(table).update(valid_patch).eq("id", record_id).execute()
            logger.info(f"Updated {table} id={record_id}: {list(valid_patch.keys())}")
            return response.data[0] if response.data else {}
        except Exception as e:
            raise self._error(table, "update", e) from e

    async def upsert(self, table: str, row: Dict) -> Dict:
        client = await self.get_client()
        valid_row = filter_row(table, row)
        try:
            response = await client.table(table).upsert(valid_row).execute()
            logger.info(f"Upserted row into {table}")
            return response.data[0] if response.data else {}
        except Exception as e:
            raise self._error(table, "upsert", e) from e

    async def delete(self, table: str, record_id: Any) -> None:
        client = await self.get_client()
        try:
            await client.table(table).delete().eq("id", record_id).execute()
            logger.info(f"Deleted {table} id={record_id}")
        except Exception as e:
            raise self._error(table, "delete", e) from e

    async def count(self, table: str) -> int:
        client = await self.get_client()
        try:
            response = await client.table(table).select("id", count="exact").limit(1).execute()
            return response.count or 0
        except Exception as e:
            raise self._error(table, "count", e) from e

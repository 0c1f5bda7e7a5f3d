"""FastAPI dependency injection."""

from functools import lru_cache

from imoveis.config import settings
from imoveis.data.sql_store import SqlEntryStore
from imoveis.engine.session import EditingSession


@lru_cache
def get_session() -> EditingSession:
    return EditingSession(SqlEntryStore(settings.database_url))

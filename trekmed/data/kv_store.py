from typing import Optional
from trekmed.data.db_context import get_db_path, create_connection

# Chave da preferência de evento escolhida na página pública
PUBLIC_EVENT_KEY = "trekking_public_event_id"

class KVStore:
    """Gerencia persistência de preferências simples (Chave-Valor)"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_db_path()
        self._init_table()

    def _init_table(self):
        with create_connection(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sys_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with create_connection(self.db_path) as conn:
            row = conn.execute("SELECT value FROM sys_meta WHERE key = ?", (key,)).fetchone()
            return row[0] if row else default

    def set(self, key: str, value: str):
        with create_connection(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO sys_meta (key, value) VALUES (?, ?)",
                (key, value),
            )

    def delete(self, key: str):
        with create_connection(self.db_path) as conn:
            conn.execute("DELETE FROM sys_meta WHERE key = ?", (key,))

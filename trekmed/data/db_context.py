import sqlite3
import os

DATABASE_NAME = "trekmed_local.db"

def get_db_path() -> str:
    """
    Caminho do banco local de preferências do cliente.
    No Android, usamos o armazenamento interno gravável.
    """
    override = os.getenv("TREKMED_DB")
    if override:
        return override

    if "ANDROID_ARGUMENT" in os.environ:
        storage_path = os.getenv("FLET_APP_STORAGE_DATA", "/data/data/com.trekmed.app/files")
        return os.path.join(storage_path, DATABASE_NAME)

    # Desenvolvimento Desktop
    return DATABASE_NAME

def create_connection(db_path: str = None) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path or get_db_path(), timeout=10.0, check_same_thread=False)
    # WAL evita travar a UI enquanto o poller grava
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn

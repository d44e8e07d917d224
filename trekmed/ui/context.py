from typing import Optional

from trekmed.data.kv_store import KVStore
from trekmed.services.api_client import ApiClient
from trekmed.services.auth_service import AuthService
from trekmed.services.event_service import EventService
from trekmed.services.realtime import ChangeFeed

class AppContext:
    """Serviços compartilhados entre as páginas de uma sessão do app."""

    def __init__(self, api: Optional[ApiClient] = None, kv_store: Optional[KVStore] = None):
        self.api = api or ApiClient()
        self.kv_store = kv_store or KVStore()
        self.auth = AuthService(self.api, self.kv_store)
        self.eventos = EventService(self.api, self.auth, self.kv_store)
        self.feed: Optional[ChangeFeed] = None
        # Rota pedida antes do login (ex.: leitura de tag NFC)
        self.pending_route: Optional[str] = None

    def replace_feed(self, feed: Optional[ChangeFeed]):
        """Mantém no máximo um feed ativo por vez"""
        if self.feed:
            self.feed.stop()
        self.feed = feed
        if feed:
            feed.start()

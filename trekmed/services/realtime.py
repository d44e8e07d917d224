import logging
import threading
from typing import Callable, Dict, Any, List, Optional

from trekmed.services.api_client import ApiClient, BackendError

logger = logging.getLogger("ChangeFeed")

ChangeCallback = Callable[[Dict[str, Any]], None]

class ChangeFeed:
    """
    Assinatura de mudanças por polling do log do servidor.
    Cada tabela tem seu próprio cursor; o primeiro prime() ignora o histórico.
    """

    def __init__(
        self,
        api: ApiClient,
        tables: List[str],
        on_change: ChangeCallback,
        evento_id: Optional[str] = None,
        interval: float = 2.0,
        max_backoff: float = 30.0,
    ):
        self.api = api
        self.tables = list(tables)
        self.on_change = on_change
        self.evento_id = evento_id
        self.interval = interval
        self.max_backoff = max_backoff

        self.cursors: Dict[str, int] = {}
        self.failures = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def prime(self):
        for table in self.tables:
            self.cursors[table] = self.api.changes(table)["cursor"]

    def poll_once(self) -> int:
        """Busca e despacha as mudanças novas. Retorna quantas foram entregues."""
        delivered = 0
        for table in self.tables:
            if table not in self.cursors:
                self.cursors[table] = self.api.changes(table)["cursor"]
                continue

            result = self.api.changes(table, since=self.cursors[table], evento_id=self.evento_id)
            for change in result["changes"]:
                try:
                    self.on_change(change)
                except Exception:
                    logger.exception("Erro ao processar mudança %s", change.get("id"))
                delivered += 1
            self.cursors[table] = result["cursor"]
        return delivered

    def next_delay(self) -> float:
        if self.failures == 0:
            return self.interval
        return min(2 ** (self.failures - 1), self.max_backoff)

    def run(self):
        while not self._stop.is_set():
            try:
                self.poll_once()
                self.failures = 0
            except BackendError as e:
                if e.status_code == 401:
                    logger.warning("Sessão expirada, feed encerrado")
                    break
                self.failures += 1
                logger.warning("Feed sem resposta (%d falhas): %s", self.failures, e.message)
            self._stop.wait(self.next_delay())

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="change-feed", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval + 1)
        self._thread = None

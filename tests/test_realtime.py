from trekmed.services.api_client import BackendError
from trekmed.services.realtime import ChangeFeed

class FakeChangesApi:
    """Log de mudanças em memória no formato de /changes/{tabela}"""

    def __init__(self):
        self.log = []
        self.errors = []

    def add(self, tabela, tipo="INSERT", registro_id="r", evento_id="e1"):
        self.log.append({
            "id": len(self.log) + 1, "tabela": tabela, "tipo": tipo,
            "registro_id": registro_id, "evento_id": evento_id,
        })

    def changes(self, table, since=None, evento_id=None):
        if self.errors:
            raise self.errors.pop(0)
        cursor = max((c["id"] for c in self.log), default=0)
        if since is None:
            return {"changes": [], "cursor": cursor}
        novos = [
            c for c in self.log
            if c["id"] > since and c["tabela"] == table and (not evento_id or c["evento_id"] == evento_id)
        ]
        return {"changes": novos, "cursor": cursor}

def test_prime_skips_history():
    api = FakeChangesApi()
    api.add("atendimentos")
    recebidos = []
    feed = ChangeFeed(api, ["atendimentos"], recebidos.append)

    feed.prime()
    assert feed.poll_once() == 0
    assert recebidos == []

def test_poll_delivers_new_changes_once():
    api = FakeChangesApi()
    recebidos = []
    feed = ChangeFeed(api, ["atendimentos", "atendimento_fotos"], recebidos.append, evento_id="e1")
    feed.prime()

    api.add("atendimentos", registro_id="a1")
    api.add("atendimento_fotos", registro_id="f1")
    api.add("atendimentos", registro_id="a2", evento_id="outro")

    assert feed.poll_once() == 2
    assert [c["registro_id"] for c in recebidos] == ["a1", "f1"]
    assert feed.poll_once() == 0
    assert feed.cursors == {"atendimentos": 3, "atendimento_fotos": 3}

def test_callback_error_does_not_stop_delivery():
    api = FakeChangesApi()
    recebidos = []

    def on_change(change):
        if change["registro_id"] == "ruim":
            raise RuntimeError("falha no handler")
        recebidos.append(change["registro_id"])

    feed = ChangeFeed(api, ["atendimentos"], on_change)
    feed.prime()
    api.add("atendimentos", registro_id="ruim")
    api.add("atendimentos", registro_id="bom")

    assert feed.poll_once() == 2
    assert recebidos == ["bom"]

def test_backoff_sequence():
    feed = ChangeFeed(FakeChangesApi(), ["atendimentos"], lambda c: None, interval=2.0, max_backoff=30.0)
    assert feed.next_delay() == 2.0

    delays = []
    for failures in range(1, 8):
        feed.failures = failures
        delays.append(feed.next_delay())
    assert delays == [1, 2, 4, 8, 16, 30, 30]

def test_run_stops_on_expired_session():
    api = FakeChangesApi()
    api.errors = [BackendError(401, "Sessão inválida")]
    feed = ChangeFeed(api, ["atendimentos"], lambda c: None, interval=0.01)
    feed.cursors = {"atendimentos": 0}

    feed.run()
    assert feed.failures == 0

def test_run_counts_failures_and_recovers():
    api = FakeChangesApi()
    api.errors = [BackendError(0, "offline"), BackendError(500, "erro")]
    feed = ChangeFeed(api, ["atendimentos"], lambda c: None, interval=0.01, max_backoff=0.01)
    feed.cursors = {"atendimentos": 0}

    seen = []
    original = feed.poll_once

    def poll_and_stop():
        try:
            return original()
        finally:
            seen.append(feed.failures)
            if len(seen) == 3:
                feed._stop.set()

    feed.poll_once = poll_and_stop
    feed.run()

    assert seen == [0, 1, 2]
    assert feed.failures == 0

def test_start_and_stop_thread():
    feed = ChangeFeed(FakeChangesApi(), ["atendimentos"], lambda c: None, interval=0.01)
    feed.prime()
    feed.start()
    assert feed._thread.is_alive()
    thread = feed._thread
    feed.stop()
    assert not thread.is_alive()

import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from trekmed.models.atendimento import AtendimentoDetalhado, Gravidade, StatusAtendimento
from trekmed.models.mudanca import MudancaTipo
from trekmed.services.api_client import ApiClient

logger = logging.getLogger("DashboardState")

TOAST_SECONDS = 5.0
HIGHLIGHT_SECONDS = 3.0

@dataclass
class Toast:
    atendimento_id: str
    mensagem: str
    gravidade: str
    expires_at: float

class DashboardState:
    """
    Lista de atendimentos do evento ativo, reconciliada a cada mudança do feed.
    Toasts e destaques são efêmeros e expiram sozinhos.
    """

    def __init__(self, api: ApiClient, evento_id: str, clock: Callable[[], float] = time.monotonic):
        self.api = api
        self.evento_id = evento_id
        self.clock = clock
        self._lock = threading.RLock()

        self.atendimentos: List[AtendimentoDetalhado] = []
        self.filtro_gravidade: Optional[str] = None
        self.toasts: List[Toast] = []
        self.highlights: Dict[str, float] = {}

        self.total_participantes = 0
        self.total_equipe = 0

    # --- Carga ---
    def load(self):
        rows = self.api.detailed_atendimentos(evento_id=self.evento_id)
        with self._lock:
            self.atendimentos = [AtendimentoDetalhado.from_api(r) for r in rows]

    def load_stats(self):
        self.total_participantes = self.api.count("participantes", {"evento_id": self.evento_id})
        self.total_equipe = self.api.count("eventos_usuarios", {"evento_id": self.evento_id, "is_active": True})

    def fetch_one(self, atendimento_id: str) -> Optional[AtendimentoDetalhado]:
        rows = self.api.detailed_atendimentos(atendimento_id=atendimento_id)
        return AtendimentoDetalhado.from_api(rows[0]) if rows else None

    # --- Reconciliação com o feed ---
    def apply_change(self, change: Dict) -> bool:
        """
        INSERT de atendimento: busca só o novo registro e coloca no topo.
        UPDATE/DELETE: recarrega a lista inteira.
        Foto nova: atualiza apenas o atendimento dono da foto.
        """
        tabela = change.get("tabela")
        tipo = change.get("tipo")
        registro_id = change.get("registro_id")

        if tabela == "atendimentos":
            if tipo == MudancaTipo.INSERT:
                return self._on_insert(registro_id)
            self.load()
            return True

        if tabela == "atendimento_fotos":
            if tipo == MudancaTipo.INSERT:
                foto = self.api.select_one("atendimento_fotos", {"id": registro_id})
                if foto:
                    return self._refresh_one(foto["atendimento_id"])
                return False
            self.load()
            return True

        return False

    def _on_insert(self, atendimento_id: str) -> bool:
        detalhado = self.fetch_one(atendimento_id)
        if not detalhado or detalhado.atendimento.evento_id != self.evento_id:
            return False

        with self._lock:
            if any(a.id == atendimento_id for a in self.atendimentos):
                return False
            self.atendimentos.insert(0, detalhado)

            now = self.clock()
            nome = detalhado.participante.nome if detalhado.participante else "Participante"
            self.toasts.append(Toast(
                atendimento_id=atendimento_id,
                mensagem=f"Novo atendimento: {nome}",
                gravidade=detalhado.gravidade,
                expires_at=now + TOAST_SECONDS,
            ))
            self.highlights[atendimento_id] = now + HIGHLIGHT_SECONDS
        return True

    def _refresh_one(self, atendimento_id: str) -> bool:
        detalhado = self.fetch_one(atendimento_id)
        if not detalhado:
            return False
        with self._lock:
            for i, atual in enumerate(self.atendimentos):
                if atual.id == atendimento_id:
                    self.atendimentos[i] = detalhado
                    return True
        return False

    # --- Estado efêmero ---
    def prune(self) -> bool:
        """Remove toasts e destaques vencidos. Retorna True se algo mudou."""
        now = self.clock()
        with self._lock:
            antes = (len(self.toasts), len(self.highlights))
            self.toasts = [t for t in self.toasts if t.expires_at > now]
            self.highlights = {k: v for k, v in self.highlights.items() if v > now}
            return antes != (len(self.toasts), len(self.highlights))

    def is_new(self, atendimento_id: str) -> bool:
        expires_at = self.highlights.get(atendimento_id)
        return expires_at is not None and expires_at > self.clock()

    # --- Filtros e contagens ---
    def set_filtro(self, gravidade: Optional[str]):
        if gravidade in (None, "todos"):
            self.filtro_gravidade = None
        elif gravidade in {g.value for g in Gravidade}:
            self.filtro_gravidade = gravidade
        else:
            raise ValueError(f"Gravidade inválida: {gravidade}")

    @property
    def filtrados(self) -> List[AtendimentoDetalhado]:
        with self._lock:
            if not self.filtro_gravidade:
                return list(self.atendimentos)
            return [a for a in self.atendimentos if a.gravidade == self.filtro_gravidade]

    def contagem_por_gravidade(self) -> Dict[str, int]:
        with self._lock:
            contagem = {g.value: 0 for g in Gravidade}
            for a in self.atendimentos:
                if a.gravidade in contagem:
                    contagem[a.gravidade] += 1
            return contagem

    # --- Ações ---
    def atualizar_status(self, atendimento_id: str, status: str):
        if status not in {s.value for s in StatusAtendimento}:
            raise ValueError(f"Status inválido: {status}")
        self.api.update("atendimentos", atendimento_id, {"status": status})
        logger.info("Atendimento %s -> %s", atendimento_id, status)

import logging
from typing import List, Optional, Set

from trekmed.models.base import utc_now
from trekmed.models.evento import Evento, EventoRole, EventoUsuario
from trekmed.models.usuario import Usuario
from trekmed.data.kv_store import KVStore, PUBLIC_EVENT_KEY
from trekmed.services.api_client import ApiClient
from trekmed.services.auth_service import AuthService, SIGNED_OUT

logger = logging.getLogger("EventService")

class EventService:
    """
    Resolve quais eventos o usuário acessa, qual está ativo e
    quais códigos de permissão valem no evento ativo.
    """

    def __init__(self, api: ApiClient, auth: AuthService, kv_store: KVStore):
        self.api = api
        self.auth = auth
        self.kv_store = kv_store

        self.eventos: List[Evento] = []
        self.selected_evento: Optional[Evento] = None
        self.membership: Optional[EventoUsuario] = None
        self.permissions: Set[str] = set()

        # Escolha feita na página pública (antes do login)
        self.public_selected_event_id: Optional[str] = kv_store.get(PUBLIC_EVENT_KEY)

        auth.on_auth_state_change(self._on_auth_change)

    def _on_auth_change(self, event: str, usuario: Optional[Usuario]):
        if event == SIGNED_OUT:
            self.eventos = []
            self.clear_evento()

    # --- Seleção pública ---
    def public_eventos(self) -> List[Evento]:
        """Eventos ativos listados na página inicial pública"""
        return [Evento.model_validate(row) for row in self.api.public_eventos()]

    def select_public_event(self, evento_id: str):
        self.kv_store.set(PUBLIC_EVENT_KEY, evento_id)
        self.public_selected_event_id = evento_id

    def clear_public_event(self):
        self.kv_store.delete(PUBLIC_EVENT_KEY)
        self.public_selected_event_id = None

    # --- Eventos do usuário ---
    def load_eventos(self) -> List[Evento]:
        """
        Busca os eventos acessíveis e já faz a seleção automática:
        evento único, ou a preferência pública quando há vários.
        """
        usuario = self.auth.get_current_user()
        if not usuario:
            self.eventos = []
            self.clear_evento()
            return []

        if usuario.is_super_admin:
            rows = self.api.select("eventos", order="created_at.desc")
        else:
            memberships = self.api.select(
                "eventos_usuarios", {"usuario_id": usuario.id, "is_active": True}
            )
            evento_ids = [m["evento_id"] for m in memberships]
            rows = self.api.select("eventos", {"id": evento_ids}, order="created_at.desc") if evento_ids else []

        self.eventos = [Evento.model_validate(row) for row in rows]

        auto_evento = self._pick_auto_event()
        if auto_evento and not self.selected_evento:
            self.select_evento(auto_evento)
        return self.eventos

    def _pick_auto_event(self) -> Optional[Evento]:
        if len(self.eventos) == 1:
            return self.eventos[0]
        if len(self.eventos) > 1:
            public_id = self.public_selected_event_id or self.kv_store.get(PUBLIC_EVENT_KEY)
            if public_id:
                return next((e for e in self.eventos if e.id == public_id), None)
        return None

    def select_evento(self, evento: Evento):
        """Ativa o evento e carrega vínculo + permissões do usuário nele"""
        self.selected_evento = evento
        usuario = self.auth.get_current_user()
        if not usuario:
            return

        if usuario.is_super_admin:
            # Super Admin tem todas as permissões
            self.permissions = {p["codigo"] for p in self.api.select("permissoes")}
            self.membership = EventoUsuario(
                id="super-admin",
                evento_id=evento.id,
                usuario_id=usuario.id,
                role=EventoRole.ADMIN_EVENTO.value,
                is_active=True,
                created_at=utc_now(),
            )
            return

        row = self.api.select_one(
            "eventos_usuarios",
            {"evento_id": evento.id, "usuario_id": usuario.id, "is_active": True},
        )
        self.membership = EventoUsuario.model_validate(row) if row else None
        self.permissions = self._load_permission_codes(self.membership.id) if self.membership else set()
        logger.info("Evento %s selecionado com %d permissões", evento.nome, len(self.permissions))

    def _load_permission_codes(self, evento_usuario_id: str) -> Set[str]:
        links = self.api.select("eventos_usuarios_permissoes", {"evento_usuario_id": evento_usuario_id})
        permissao_ids = [link["permissao_id"] for link in links]
        if not permissao_ids:
            return set()
        return {p["codigo"] for p in self.api.select("permissoes", {"id": permissao_ids})}

    def clear_evento(self):
        self.selected_evento = None
        self.membership = None
        self.permissions = set()

    def has_permission(self, codigo: str) -> bool:
        if self.auth.is_super_admin:
            return True
        return codigo in self.permissions

    @property
    def is_event_admin(self) -> bool:
        return bool(self.membership and self.membership.role == EventoRole.ADMIN_EVENTO.value)

    def landing_route(self) -> str:
        """Para onde o usuário vai após o login"""
        return "/dashboard" if self.selected_evento else "/eventos"

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from trekmed.models.evento import Evento, EventoStatus
from trekmed.models.usuario import Usuario
from trekmed.services.api_client import ApiClient
from trekmed.services.auth_service import AuthService
from trekmed.services.errors import FormError, PermissionDenied

logger = logging.getLogger("AdminService")

@dataclass
class EventoResumo:
    evento: Evento
    participantes: int = 0
    equipe: int = 0
    atendimentos: int = 0

@dataclass
class UsuarioResumo:
    usuario: Usuario
    eventos: List[str] = field(default_factory=list)

class AdminService:
    """Operações de plataforma, exclusivas do Super Admin."""

    def __init__(self, api: ApiClient, auth: AuthService):
        self.api = api
        self.auth = auth

    def _require_super_admin(self) -> Usuario:
        usuario = self.auth.get_current_user()
        if not usuario or not usuario.is_super_admin:
            raise PermissionDenied("Acesso restrito ao Super Admin.")
        return usuario

    # --- Visão geral ---
    def estatisticas(self) -> Dict[str, int]:
        self._require_super_admin()
        return {
            "eventos": self.api.count("eventos"),
            "eventos_ativos": self.api.count("eventos", {"status": EventoStatus.ATIVO.value}),
            "usuarios": self.api.count("usuarios"),
            "participantes": self.api.count("participantes"),
            "atendimentos": self.api.count("atendimentos"),
        }

    def eventos_com_contagens(self, incluir_arquivados: bool = True) -> List[EventoResumo]:
        self._require_super_admin()
        filters = None if incluir_arquivados else {"status": f"neq.{EventoStatus.ARQUIVADO.value}"}
        eventos = [Evento.model_validate(r) for r in self.api.select("eventos", filters, order="created_at.desc")]
        return [
            EventoResumo(
                evento=e,
                participantes=self.api.count("participantes", {"evento_id": e.id}),
                equipe=self.api.count("eventos_usuarios", {"evento_id": e.id, "is_active": True}),
                atendimentos=self.api.count("atendimentos", {"evento_id": e.id}),
            )
            for e in eventos
        ]

    # --- Eventos ---
    def salvar_evento(
        self,
        nome: str,
        descricao: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        status: str = EventoStatus.DRAFT.value,
        foto_url: Optional[str] = None,
        evento_id: Optional[str] = None,
    ) -> Evento:
        usuario = self._require_super_admin()
        if not nome or not nome.strip():
            raise FormError("Nome do evento é obrigatório", field="nome")
        if status not in {s.value for s in EventoStatus}:
            raise FormError(f"Status inválido: {status}", field="status")
        if data_inicio and data_fim and data_fim < data_inicio:
            raise FormError("Data de término anterior ao início", field="data_fim")

        payload: Dict[str, Any] = {
            "nome": nome.strip(),
            "descricao": (descricao or "").strip() or None,
            "data_inicio": data_inicio.isoformat() if data_inicio else None,
            "data_fim": data_fim.isoformat() if data_fim else None,
            "status": status,
            "foto_url": foto_url,
        }
        if evento_id:
            row = self.api.update("eventos", evento_id, payload)
        else:
            payload["created_by"] = usuario.id
            row = self.api.insert("eventos", payload)
        logger.info("Evento %s salvo (%s)", row["nome"], row["status"])
        return Evento.model_validate(row)

    def _set_status(self, evento_id: str, status: str) -> Evento:
        self._require_super_admin()
        return Evento.model_validate(self.api.update("eventos", evento_id, {"status": status}))

    def arquivar_evento(self, evento_id: str) -> Evento:
        return self._set_status(evento_id, EventoStatus.ARQUIVADO.value)

    def reativar_evento(self, evento_id: str) -> Evento:
        return self._set_status(evento_id, EventoStatus.ATIVO.value)

    # --- Usuários ---
    def usuarios_com_eventos(self) -> List[UsuarioResumo]:
        self._require_super_admin()
        usuarios = [Usuario.model_validate(r) for r in self.api.select("usuarios", order="nome.asc")]
        vinculos = self.api.select("eventos_usuarios", {"is_active": True})
        nomes_eventos = {e["id"]: e["nome"] for e in self.api.select("eventos")}

        por_usuario: Dict[str, List[str]] = {}
        for v in vinculos:
            nome = nomes_eventos.get(v["evento_id"])
            if nome:
                por_usuario.setdefault(v["usuario_id"], []).append(nome)

        return [UsuarioResumo(usuario=u, eventos=sorted(por_usuario.get(u.id, []))) for u in usuarios]

    def _toggle(self, alvo: Usuario, campo: str) -> Usuario:
        atual = self._require_super_admin()
        if alvo.id == atual.id:
            raise PermissionDenied("Você não pode alterar o próprio acesso.")
        row = self.api.update("usuarios", alvo.id, {campo: not getattr(alvo, campo)})
        logger.info("Usuário %s: %s = %s", alvo.email, campo, row[campo])
        return Usuario.model_validate(row)

    def alternar_super_admin(self, alvo: Usuario) -> Usuario:
        return self._toggle(alvo, "is_super_admin")

    def alternar_ativo(self, alvo: Usuario) -> Usuario:
        return self._toggle(alvo, "is_active")

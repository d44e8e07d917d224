import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from trekmed.models.evento import EventoRole, EventoUsuario
from trekmed.models.permissao import GERENCIAR_EQUIPE, Permissao
from trekmed.models.usuario import Usuario
from trekmed.services.api_client import ApiClient, BackendError
from trekmed.services.event_service import EventService
from trekmed.services.errors import FormError, PermissionDenied

logger = logging.getLogger("EquipeService")

@dataclass
class Membro:
    vinculo: EventoUsuario
    usuario: Optional[Usuario] = None
    permissoes: Set[str] = field(default_factory=set)

    @property
    def nome(self) -> str:
        return self.usuario.nome if self.usuario else "(usuário removido)"

    @property
    def is_admin(self) -> bool:
        return self.vinculo.role == EventoRole.ADMIN_EVENTO.value

class EquipeService:
    """Membros da equipe do evento ativo e suas permissões."""

    def __init__(self, api: ApiClient, eventos: EventService):
        self.api = api
        self.eventos = eventos

    def pode_gerenciar(self) -> bool:
        return self.eventos.has_permission(GERENCIAR_EQUIPE)

    def _require_manage(self):
        if not self.pode_gerenciar():
            raise PermissionDenied("Você não tem permissão para gerenciar a equipe.")

    def _evento_id(self) -> str:
        if not self.eventos.selected_evento:
            raise PermissionDenied("Selecione um evento primeiro.")
        return self.eventos.selected_evento.id

    def listar_permissoes(self) -> List[Permissao]:
        return [Permissao.model_validate(r) for r in self.api.select("permissoes", order="codigo.asc")]

    def listar_membros(self) -> List[Membro]:
        vinculos = [
            EventoUsuario.model_validate(r)
            for r in self.api.select("eventos_usuarios", {"evento_id": self._evento_id()}, order="created_at.asc")
        ]
        if not vinculos:
            return []

        usuarios: Dict[str, Usuario] = {
            r["id"]: Usuario.model_validate(r)
            for r in self.api.select("usuarios", {"id": [v.usuario_id for v in vinculos]})
        }
        catalogo = {p.id: p.codigo for p in self.listar_permissoes()}
        links = self.api.select("eventos_usuarios_permissoes", {"evento_usuario_id": [v.id for v in vinculos]})

        codigos: Dict[str, Set[str]] = {}
        for link in links:
            codigo = catalogo.get(link["permissao_id"])
            if codigo:
                codigos.setdefault(link["evento_usuario_id"], set()).add(codigo)

        return [
            Membro(vinculo=v, usuario=usuarios.get(v.usuario_id), permissoes=codigos.get(v.id, set()))
            for v in vinculos
        ]

    def criar_membro(
        self,
        email: str,
        senha: str,
        nome: str,
        role: str = EventoRole.EQUIPE_SAUDE.value,
        permissoes: Iterable[str] = (),
        crm: Optional[str] = None,
        especialidade: Optional[str] = None,
        telefone: Optional[str] = None,
    ) -> Membro:
        """
        Cria a conta (ou reaproveita a existente com o mesmo e-mail),
        o vínculo com o evento ativo e os links de permissão.
        """
        self._require_manage()
        evento_id = self._evento_id()

        if not nome or not nome.strip():
            raise FormError("Nome é obrigatório", field="nome")
        if not email or "@" not in email:
            raise FormError("E-mail inválido", field="email")
        if role not in {r.value for r in EventoRole}:
            raise FormError(f"Papel inválido: {role}", field="role")

        email = email.strip().lower()
        try:
            usuario_row = self.api.signup(
                email=email, password=senha, nome=nome.strip(),
                crm=crm, especialidade=especialidade, telefone=telefone,
                evento_id=evento_id,
            )
        except BackendError as e:
            if e.status_code != 409:
                raise
            # Conta já existe: apenas vincula ao evento
            usuario_row = self.api.select_one("usuarios", {"email": email})
            if not usuario_row:
                raise
            logger.info("Usuário %s já existente, vinculando ao evento", email)

        usuario = Usuario.model_validate(usuario_row)
        if self.api.select_one("eventos_usuarios", {"evento_id": evento_id, "usuario_id": usuario.id}):
            raise FormError("Este usuário já faz parte da equipe do evento.", field="email")

        atual = self.eventos.auth.get_current_user()
        vinculo = EventoUsuario.model_validate(self.api.insert("eventos_usuarios", {
            "evento_id": evento_id,
            "usuario_id": usuario.id,
            "role": role,
            "is_active": True,
            "criado_por": atual.id if atual else None,
        }))
        codigos = self.definir_permissoes(vinculo.id, permissoes)
        logger.info("Membro %s adicionado ao evento %s", usuario.email, evento_id)
        return Membro(vinculo=vinculo, usuario=usuario, permissoes=codigos)

    def definir_permissoes(self, evento_usuario_id: str, codigos: Iterable[str]) -> Set[str]:
        """Substitui o conjunto de permissões do vínculo"""
        self._require_manage()
        desejados = set(codigos)
        catalogo = {p.codigo: p.id for p in self.listar_permissoes()}
        desconhecidos = desejados - set(catalogo)
        if desconhecidos:
            raise FormError(f"Permissões desconhecidas: {', '.join(sorted(desconhecidos))}")

        atuais = self.api.select("eventos_usuarios_permissoes", {"evento_usuario_id": evento_usuario_id})
        ids_desejados = {catalogo[c] for c in desejados}
        for link in atuais:
            if link["permissao_id"] not in ids_desejados:
                self.api.delete("eventos_usuarios_permissoes", link["id"])
        ja_vinculados = {link["permissao_id"] for link in atuais}
        for permissao_id in ids_desejados - ja_vinculados:
            self.api.insert("eventos_usuarios_permissoes", {
                "evento_usuario_id": evento_usuario_id,
                "permissao_id": permissao_id,
            })
        return desejados

    def alternar_ativo(self, membro: Membro) -> EventoUsuario:
        self._require_manage()
        row = self.api.update("eventos_usuarios", membro.vinculo.id, {"is_active": not membro.vinculo.is_active})
        return EventoUsuario.model_validate(row)

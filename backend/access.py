"""
Regras de acesso por evento, aplicadas pelo servidor em toda leitura e escrita.

Super Admin enxerga e altera tudo. Os demais usuários só enxergam dados
dos eventos em que têm vínculo ativo, e cada escrita exige a permissão
correspondente no evento afetado.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import HTTPException, status
from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from trekmed.models.atendimento import Atendimento, AtendimentoFoto
from trekmed.models.evento import Evento, EventoUsuario
from trekmed.models.participante import Participante
from trekmed.models.permissao import (
    EDITAR_ATENDIMENTO,
    GERENCIAR_EQUIPE,
    GERENCIAR_PARTICIPANTES,
    EventoUsuarioPermissao,
    Permissao,
)
from trekmed.models.usuario import Usuario

logger = logging.getLogger("backend.access")

# Escrita restrita ao Super Admin
SUPER_ADMIN_RESOURCES = {"eventos", "usuarios", "permissoes"}

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

def forbidden(detail: str) -> HTTPException:
    logger.warning("Acesso negado: %s", detail)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

async def member_event_ids(session: AsyncSession, usuario: Usuario) -> Optional[Set[str]]:
    """Eventos com vínculo ativo. None significa todos (Super Admin)."""
    if usuario.is_super_admin:
        return None
    result = await session.exec(
        select(EventoUsuario.evento_id).where(
            EventoUsuario.usuario_id == usuario.id,
            col(EventoUsuario.is_active).is_(True),
        )
    )
    return set(result.all())

async def is_member(session: AsyncSession, usuario: Usuario, evento_id: Optional[str]) -> bool:
    eventos = await member_event_ids(session, usuario)
    return eventos is None or (evento_id is not None and evento_id in eventos)

async def has_permission(session: AsyncSession, usuario: Usuario, evento_id: Optional[str], codigo: str) -> bool:
    if usuario.is_super_admin:
        return True
    if not evento_id:
        return False
    statement = (
        select(EventoUsuarioPermissao.id)
        .join(EventoUsuario, col(EventoUsuario.id) == col(EventoUsuarioPermissao.evento_usuario_id))
        .join(Permissao, col(Permissao.id) == col(EventoUsuarioPermissao.permissao_id))
        .where(
            EventoUsuario.evento_id == evento_id,
            EventoUsuario.usuario_id == usuario.id,
            col(EventoUsuario.is_active).is_(True),
            Permissao.codigo == codigo,
        )
    )
    return (await session.exec(statement)).first() is not None

async def manages_any_event(session: AsyncSession, usuario: Usuario) -> bool:
    """Gestores de equipe podem localizar contas existentes pelo e-mail"""
    for evento_id in await member_event_ids(session, usuario) or ():
        if await has_permission(session, usuario, evento_id, GERENCIAR_EQUIPE):
            return True
    return False

# --- Leitura ---
async def read_scope(session: AsyncSession, usuario: Usuario, resource_name: str) -> List[Any]:
    """Cláusulas WHERE extras que limitam a leitura aos eventos do usuário"""
    eventos = await member_event_ids(session, usuario)
    if eventos is None:
        return []
    ids = list(eventos)
    vinculos_visiveis = select(EventoUsuario.id).where(
        or_(col(EventoUsuario.evento_id).in_(ids), EventoUsuario.usuario_id == usuario.id)
    )

    if resource_name == "eventos":
        return [col(Evento.id).in_(ids)]
    if resource_name == "participantes":
        return [col(Participante.evento_id).in_(ids)]
    if resource_name == "atendimentos":
        return [col(Atendimento.evento_id).in_(ids)]
    if resource_name == "atendimento_fotos":
        return [col(AtendimentoFoto.atendimento_id).in_(
            select(Atendimento.id).where(col(Atendimento.evento_id).in_(ids))
        )]
    if resource_name == "eventos_usuarios":
        return [or_(col(EventoUsuario.evento_id).in_(ids), EventoUsuario.usuario_id == usuario.id)]
    if resource_name == "eventos_usuarios_permissoes":
        return [col(EventoUsuarioPermissao.evento_usuario_id).in_(vinculos_visiveis)]
    if resource_name == "usuarios":
        if await manages_any_event(session, usuario):
            return []
        colegas = select(EventoUsuario.usuario_id).where(col(EventoUsuario.evento_id).in_(ids))
        return [or_(col(Usuario.id).in_(colegas), Usuario.id == usuario.id)]
    # Catálogo de permissões é público para usuários autenticados
    return []

# --- Escrita ---
async def _evento_afetado(session: AsyncSession, resource_name: str, values: Dict[str, Any]) -> Optional[str]:
    if resource_name in ("participantes", "atendimentos", "eventos_usuarios"):
        return values.get("evento_id")
    if resource_name == "eventos_usuarios_permissoes":
        vinculo_id = values.get("evento_usuario_id")
        vinculo = await session.get(EventoUsuario, vinculo_id) if vinculo_id else None
        return vinculo.evento_id if vinculo else None
    if resource_name == "atendimento_fotos":
        atendimento_id = values.get("atendimento_id")
        atendimento = await session.get(Atendimento, atendimento_id) if atendimento_id else None
        return atendimento.evento_id if atendimento else None
    return None

async def _check_state(
    session: AsyncSession, usuario: Usuario, resource_name: str, action: str, values: Dict[str, Any]
):
    evento_id = await _evento_afetado(session, resource_name, values)

    if resource_name in ("eventos_usuarios", "eventos_usuarios_permissoes"):
        if not await has_permission(session, usuario, evento_id, GERENCIAR_EQUIPE):
            raise forbidden("Sem permissão para gerenciar a equipe deste evento.")
    elif resource_name == "participantes":
        if not await has_permission(session, usuario, evento_id, GERENCIAR_PARTICIPANTES):
            raise forbidden("Sem permissão para gerenciar participantes deste evento.")
    elif resource_name in ("atendimentos", "atendimento_fotos"):
        if action == INSERT:
            if not await is_member(session, usuario, evento_id):
                raise forbidden("Você não faz parte da equipe deste evento.")
            if resource_name == "atendimentos" and values.get("medico_id") != usuario.id:
                raise forbidden("O atendimento deve ser registrado em nome do próprio usuário.")
        elif not await has_permission(session, usuario, evento_id, EDITAR_ATENDIMENTO):
            raise forbidden("Sem permissão para alterar atendimentos deste evento.")
    else:
        raise forbidden("Recurso sem escrita liberada.")

async def check_write(
    session: AsyncSession,
    usuario: Usuario,
    resource_name: str,
    action: str,
    states: Iterable[Dict[str, Any]],
):
    """
    Valida a escrita contra cada estado do registro (antes e depois, no PATCH),
    impedindo mover um registro para um evento sem permissão.
    """
    if usuario.is_super_admin:
        return
    if resource_name in SUPER_ADMIN_RESOURCES:
        raise forbidden("Apenas Super Admin pode alterar este recurso.")
    for values in states:
        await _check_state(session, usuario, resource_name, action, values)

from typing import Any, List, Optional
from sqlmodel import SQLModel, col, or_, select, func
from sqlmodel.ext.asyncio.session import AsyncSession

from trekmed.models.atendimento import Atendimento, AtendimentoFoto
from trekmed.models.evento import Evento, EventoUsuario
from trekmed.models.mudanca import Mudanca
from trekmed.models.permissao import EventoUsuarioPermissao

async def _evento_of(session: AsyncSession, record: SQLModel) -> Optional[str]:
    if isinstance(record, Evento):
        return record.id
    evento_id = getattr(record, "evento_id", None)
    if evento_id:
        return evento_id
    # Fotos herdam o evento do atendimento
    if isinstance(record, AtendimentoFoto):
        parent = await session.get(Atendimento, record.atendimento_id)
        return parent.evento_id if parent else None
    # Permissões herdam o evento do vínculo
    if isinstance(record, EventoUsuarioPermissao):
        vinculo = await session.get(EventoUsuario, record.evento_usuario_id)
        return vinculo.evento_id if vinculo else None
    return None

async def record_change(session: AsyncSession, tabela: str, tipo: str, record: SQLModel):
    """Adiciona a mudança na mesma transação da escrita (commit fica com o chamador)"""
    session.add(Mudanca(
        tabela=tabela,
        tipo=tipo,
        registro_id=str(record.id),
        evento_id=await _evento_of(session, record),
    ))

async def current_cursor(session: AsyncSession) -> int:
    result = await session.exec(select(func.max(Mudanca.id)))
    return result.one() or 0

async def list_changes(
    session: AsyncSession,
    tabela: str,
    since: int,
    evento_id: Optional[str] = None,
    limit: int = 500,
    visible_eventos: Optional[List[Any]] = None,
) -> List[Mudanca]:
    """
    visible_eventos limita o feed aos eventos do usuário (None = sem limite).
    Mudanças sem evento (usuários, catálogo de permissões) continuam visíveis.
    """
    statement = select(Mudanca).where(Mudanca.tabela == tabela, Mudanca.id > since)
    if evento_id:
        statement = statement.where(Mudanca.evento_id == evento_id)
    if visible_eventos is not None:
        statement = statement.where(
            or_(col(Mudanca.evento_id).in_(visible_eventos), col(Mudanca.evento_id).is_(None))
        )
    statement = statement.order_by(Mudanca.id).limit(limit)
    result = await session.exec(statement)
    return result.all()

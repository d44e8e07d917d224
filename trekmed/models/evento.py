from typing import Optional
from datetime import date
from enum import Enum
from sqlmodel import Field
from .base import RecordModel

class EventoStatus(str, Enum):
    DRAFT = "draft"
    ATIVO = "ativo"
    ENCERRADO = "encerrado"
    ARQUIVADO = "arquivado"

class EventoRole(str, Enum):
    ADMIN_EVENTO = "admin_evento"
    EQUIPE_SAUDE = "equipe_saude"

class Evento(RecordModel, table=True):
    __tablename__ = "eventos"

    nome: str = Field(index=True)
    descricao: Optional[str] = Field(default=None)
    foto_url: Optional[str] = Field(default=None)
    data_inicio: Optional[date] = None
    data_fim: Optional[date] = None

    # Salvo como texto simples; valores válidos em EventoStatus
    status: str = Field(default=EventoStatus.DRAFT.value, index=True)
    created_by: Optional[str] = Field(default=None)

class EventoUsuario(RecordModel, table=True):
    """Vínculo de um usuário com um evento (papel + permissões)."""
    __tablename__ = "eventos_usuarios"

    evento_id: str = Field(index=True)
    usuario_id: str = Field(index=True)
    role: str = Field(default=EventoRole.EQUIPE_SAUDE.value)
    is_active: bool = Field(default=True)
    criado_por: Optional[str] = Field(default=None)

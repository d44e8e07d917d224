from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel
from .base import RecordModel, utc_now

class Usuario(RecordModel, table=True):
    """
    Usuário da plataforma. Também é o "médico" que assina os atendimentos.
    O papel por evento fica em EventoUsuario; aqui só o flag global.
    """
    __tablename__ = "usuarios"

    # Credenciais (o hash nunca sai do servidor)
    email: str = Field(index=True, unique=True)
    password_hash: str = Field(default="")

    # Identificação
    nome: str

    # RBAC global
    is_super_admin: bool = Field(default=False)
    is_active: bool = Field(default=True)

    # Dados profissionais
    crm: Optional[str] = Field(default=None)
    especialidade: Optional[str] = Field(default=None)
    telefone: Optional[str] = Field(default=None)

class Sessao(SQLModel, table=True):
    __tablename__ = "sessoes"

    token: str = Field(primary_key=True)
    usuario_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

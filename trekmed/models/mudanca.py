from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel
from .base import utc_now

class MudancaTipo:
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

class Mudanca(SQLModel, table=True):
    """
    Log de alterações consumido pelo feed em tempo real.
    O id sequencial é o cursor do cliente.
    """
    __tablename__ = "mudancas"

    id: Optional[int] = Field(default=None, primary_key=True)
    tabela: str = Field(index=True)
    tipo: str
    registro_id: str
    evento_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)

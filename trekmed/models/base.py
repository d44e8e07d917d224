import uuid
from datetime import datetime, timezone
from sqlmodel import Field, SQLModel

def utc_now():
    return datetime.now(timezone.utc)

def new_id() -> str:
    return str(uuid.uuid4())

class RecordModel(SQLModel):
    """
    Base das tabelas expostas pelo servidor central.
    Chave UUID gerada no cliente ou no servidor, nunca autoincremento.
    """
    id: str = Field(default_factory=new_id, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self):
        """Marca a alteração (chamado em todo PATCH)"""
        self.updated_at = utc_now()

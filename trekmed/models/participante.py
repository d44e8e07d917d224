from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import Field
from .base import RecordModel

class Participante(RecordModel, table=True):
    __tablename__ = "participantes"
    # A mesma tag pode ser reaproveitada em outro evento, nunca dentro dele
    __table_args__ = (
        UniqueConstraint("evento_id", "nfc_tag_id", name="uq_participante_evento_tag"),
    )

    nome: str = Field(index=True)
    # Identificador gravado na pulseira/tag NFC
    nfc_tag_id: str = Field(index=True)
    evento_id: Optional[str] = Field(default=None, index=True)

    cpf: Optional[str] = Field(default=None)
    idade: Optional[int] = None
    telefone: Optional[str] = Field(default=None)
    telefone_emergencia: Optional[str] = Field(default=None)
    contato_emergencia_nome: Optional[str] = Field(default=None)
    cidade_estado: Optional[str] = Field(default=None)
    equipe_familia: Optional[str] = Field(default=None)
    foto_url: Optional[str] = Field(default=None)

    # Dados clínicos
    alergias: Optional[str] = Field(default=None)
    condicoes_medicas: Optional[str] = Field(default=None)
    medicamentos: Optional[str] = Field(default=None)
    tipo_sanguineo: Optional[str] = Field(default=None)
    peso: Optional[float] = None
    altura: Optional[float] = None
    biotipo: Optional[str] = Field(default=None)
    # Escala de 1 (crítico) a 5 (saudável)
    indicativo_saude: Optional[int] = None
    cirurgias: Optional[str] = Field(default=None)
    observacao_especial: Optional[str] = Field(default=None)
    atividade_fisica_semanal: Optional[str] = Field(default=None)
    plano_saude: Optional[str] = Field(default=None)
    outras_informacoes_medicas: Optional[str] = Field(default=None)

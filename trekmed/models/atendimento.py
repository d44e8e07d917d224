from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field
from enum import Enum
from sqlmodel import Field
from .base import RecordModel
from .participante import Participante
from .usuario import Usuario

class Gravidade(str, Enum):
    LEVE = "leve"
    MODERADO = "moderado"
    GRAVE = "grave"
    CRITICO = "critico"

class StatusAtendimento(str, Enum):
    EM_ANDAMENTO = "em_andamento"
    FINALIZADO = "finalizado"
    ENCAMINHADO = "encaminhado"

class Atendimento(RecordModel, table=True):
    __tablename__ = "atendimentos"

    participante_id: str = Field(index=True)
    medico_id: str = Field(index=True)
    evento_id: Optional[str] = Field(default=None, index=True)

    descricao: str
    gravidade: str = Field(default=Gravidade.LEVE.value, index=True)

    # Posição do GPS no momento do registro
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    precisao_gps: Optional[float] = None

    status: str = Field(default=StatusAtendimento.EM_ANDAMENTO.value)
    observacoes: Optional[str] = Field(default=None)

class AtendimentoFoto(RecordModel, table=True):
    __tablename__ = "atendimento_fotos"

    atendimento_id: str = Field(index=True)
    foto_url: str
    legenda: Optional[str] = Field(default=None)

@dataclass
class AtendimentoDetalhado:
    """Atendimento com participante, médico e fotos já resolvidos."""
    atendimento: Atendimento
    participante: Optional[Participante] = None
    medico: Optional[Usuario] = None
    fotos: List[AtendimentoFoto] = field(default_factory=list)

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "AtendimentoDetalhado":
        data = dict(row)
        participante = data.pop("participante", None)
        medico = data.pop("medico", None)
        fotos = data.pop("fotos", None) or []
        return cls(
            atendimento=Atendimento.model_validate(data),
            participante=Participante.model_validate(participante) if participante else None,
            medico=Usuario.model_validate(medico) if medico else None,
            fotos=[AtendimentoFoto.model_validate(f) for f in fotos],
        )

    @property
    def id(self) -> str:
        return self.atendimento.id

    @property
    def gravidade(self) -> str:
        return self.atendimento.gravidade

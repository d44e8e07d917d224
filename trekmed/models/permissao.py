from typing import Optional
from sqlmodel import Field
from .base import RecordModel

# Códigos usados para liberar ações na interface
GERENCIAR_EQUIPE = "gerenciar_equipe"
GERENCIAR_PARTICIPANTES = "gerenciar_participantes"
REGISTRAR_ATENDIMENTO = "registrar_atendimento"
VER_DASHBOARD = "ver_dashboard"
EDITAR_ATENDIMENTO = "editar_atendimento"

class Permissao(RecordModel, table=True):
    __tablename__ = "permissoes"

    codigo: str = Field(index=True, unique=True)
    descricao: Optional[str] = Field(default=None)
    # "admin_evento", "equipe_saude" ou "todos"
    aplica_a_role: str = Field(default="todos")

class EventoUsuarioPermissao(RecordModel, table=True):
    __tablename__ = "eventos_usuarios_permissoes"

    evento_usuario_id: str = Field(index=True)
    permissao_id: str = Field(index=True)

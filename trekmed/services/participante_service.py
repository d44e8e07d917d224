import logging
from typing import Any, Dict, List, Optional

from trekmed.models.participante import Participante
from trekmed.models.permissao import GERENCIAR_PARTICIPANTES
from trekmed.services.api_client import ApiClient, BackendError
from trekmed.services.event_service import EventService
from trekmed.services.errors import FormError, PermissionDenied

logger = logging.getLogger("ParticipanteService")

TEXT_FIELDS = [
    "cpf", "telefone", "telefone_emergencia", "contato_emergencia_nome",
    "cidade_estado", "equipe_familia", "foto_url",
    "alergias", "condicoes_medicas", "medicamentos", "tipo_sanguineo",
    "biotipo", "cirurgias", "observacao_especial", "atividade_fisica_semanal",
    "plano_saude", "outras_informacoes_medicas",
]

def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None

def _parse_int(value: Any, field: str, label: str) -> Optional[int]:
    text = _blank_to_none(value)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        raise FormError(f"{label} deve ser um número inteiro.", field=field)

def _parse_float(value: Any, field: str, label: str) -> Optional[float]:
    text = _blank_to_none(value)
    if text is None:
        return None
    try:
        # Aceita vírgula decimal ("72,5")
        return float(text.replace(",", "."))
    except ValueError:
        raise FormError(f"{label} deve ser um número.", field=field)

def shape_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """
    Converte os valores crus do formulário no payload da tabela participantes.
    Campos vazios viram None; numéricos são convertidos.
    """
    nome = _blank_to_none(form.get("nome"))
    if not nome:
        raise FormError("Nome é obrigatório", field="nome")
    tag = _blank_to_none(form.get("nfc_tag_id"))
    if not tag:
        raise FormError("ID da tag NFC é obrigatório", field="nfc_tag_id")

    payload: Dict[str, Any] = {"nome": nome, "nfc_tag_id": tag}
    for field in TEXT_FIELDS:
        payload[field] = _blank_to_none(form.get(field))

    payload["idade"] = _parse_int(form.get("idade"), "idade", "Idade")
    payload["peso"] = _parse_float(form.get("peso"), "peso", "Peso")
    payload["altura"] = _parse_float(form.get("altura"), "altura", "Altura")

    indicativo = _parse_int(form.get("indicativo_saude"), "indicativo_saude", "Indicativo de saúde")
    if indicativo is not None and not 1 <= indicativo <= 5:
        raise FormError("Indicativo de saúde deve estar entre 1 e 5", field="indicativo_saude")
    payload["indicativo_saude"] = indicativo

    return payload

class ParticipanteService:
    def __init__(self, api: ApiClient, eventos: EventService):
        self.api = api
        self.eventos = eventos

    def _evento_id(self) -> str:
        if not self.eventos.selected_evento:
            raise PermissionDenied("Selecione um evento primeiro.")
        return self.eventos.selected_evento.id

    def _require_manage(self):
        if not self.eventos.has_permission(GERENCIAR_PARTICIPANTES):
            raise PermissionDenied("Você não tem permissão para gerenciar participantes.")

    def listar(self) -> List[Participante]:
        rows = self.api.select("participantes", {"evento_id": self._evento_id()}, order="nome.asc")
        return [Participante.model_validate(r) for r in rows]

    @staticmethod
    def filtrar(participantes: List[Participante], termo: str = "") -> List[Participante]:
        """Busca por nome ou tag, sem diferenciar maiúsculas"""
        termo = (termo or "").strip().lower()
        if not termo:
            return list(participantes)
        return [
            p for p in participantes
            if termo in p.nome.lower() or termo in (p.nfc_tag_id or "").lower()
        ]

    def _check_tag_livre(self, tag: str, participante_id: Optional[str]):
        existente = self.api.select_one("participantes", {"evento_id": self._evento_id(), "nfc_tag_id": tag})
        if existente and existente["id"] != participante_id:
            raise FormError(f"A tag {tag} já pertence a {existente['nome']} neste evento.", field="nfc_tag_id")

    def salvar(self, form: Dict[str, Any], participante_id: Optional[str] = None) -> Participante:
        self._require_manage()
        payload = shape_form(form)
        self._check_tag_livre(payload["nfc_tag_id"], participante_id)

        try:
            if participante_id:
                row = self.api.update("participantes", participante_id, payload)
                logger.info("Participante %s atualizado", participante_id)
            else:
                payload["evento_id"] = self._evento_id()
                row = self.api.insert("participantes", payload)
                logger.info("Participante %s criado", row["id"])
        except BackendError as e:
            # Outro dispositivo gravou a mesma tag entre a checagem e o envio
            if e.status_code == 409:
                raise FormError("Esta tag já está em uso neste evento.", field="nfc_tag_id") from e
            raise
        return Participante.model_validate(row)

    def excluir(self, participante_id: str):
        self._require_manage()
        self.api.delete("participantes", participante_id)
        logger.info("Participante %s excluído", participante_id)

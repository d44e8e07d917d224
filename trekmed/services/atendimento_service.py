import time
import secrets
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from trekmed.models.atendimento import Atendimento, AtendimentoFoto, Gravidade, StatusAtendimento
from trekmed.models.participante import Participante
from trekmed.services.api_client import ApiClient, BackendError
from trekmed.services.auth_service import AuthService
from trekmed.services.errors import FormError, PermissionDenied
from trekmed.services.geolocation import Position
from trekmed.services.image_service import compress_image

logger = logging.getLogger("AtendimentoService")

FOTOS_BUCKET = "atendimento-fotos"

@dataclass
class RegistroResultado:
    atendimento: Atendimento
    fotos_enviadas: List[AtendimentoFoto] = field(default_factory=list)
    fotos_falhas: int = 0

class AtendimentoService:
    """Fluxo de registro em campo: tag NFC -> participante -> atendimento + fotos."""

    def __init__(
        self,
        api: ApiClient,
        auth: AuthService,
        compressor: Callable[[bytes], bytes] = compress_image,
    ):
        self.api = api
        self.auth = auth
        self.compressor = compressor

    def resolve_tag(self, tag_id: Optional[str], evento_id: Optional[str] = None) -> Optional[Participante]:
        """
        Busca o participante da tag entre os eventos visíveis ao usuário.
        A mesma tag pode existir em eventos diferentes: o evento selecionado
        tem prioridade, depois o cadastro mais recente.
        """
        tag = (tag_id or "").strip()
        if not tag:
            return None
        rows = self.api.select("participantes", {"nfc_tag_id": tag}, order="created_at.desc")
        if not rows:
            return None
        row = next((r for r in rows if evento_id and r["evento_id"] == evento_id), rows[0])
        return Participante.model_validate(row)

    def check_access(self, participante: Participante):
        """Exige login e vínculo ativo com o evento do participante"""
        usuario = self.auth.get_current_user()
        if not usuario:
            raise PermissionDenied("Faça login para registrar atendimentos.")
        if usuario.is_super_admin:
            return

        membership = self.api.select_one(
            "eventos_usuarios",
            {"evento_id": participante.evento_id, "usuario_id": usuario.id, "is_active": True},
        )
        if not membership:
            raise PermissionDenied("Você não faz parte da equipe deste evento.")

    def prepare_photo(self, content: bytes) -> bytes:
        return self.compressor(content)

    def registrar(
        self,
        participante: Participante,
        posicao: Optional[Position],
        descricao: str,
        gravidade: str = Gravidade.LEVE.value,
        observacoes: Optional[str] = None,
        fotos: Iterable[bytes] = (),
    ) -> RegistroResultado:
        usuario = self.auth.get_current_user()
        if not usuario:
            raise PermissionDenied("Faça login para registrar atendimentos.")
        if posicao is None:
            raise FormError("Aguardando GPS...")
        if not descricao or not descricao.strip():
            raise FormError("Descrição do atendimento é obrigatória.", field="descricao")
        if gravidade not in {g.value for g in Gravidade}:
            raise FormError(f"Gravidade inválida: {gravidade}", field="gravidade")

        # 1. Cria o atendimento
        row = self.api.insert("atendimentos", {
            "participante_id": participante.id,
            "medico_id": usuario.id,
            "evento_id": participante.evento_id,
            "descricao": descricao.strip(),
            "gravidade": gravidade,
            "latitude": posicao.latitude,
            "longitude": posicao.longitude,
            "altitude": posicao.altitude,
            "precisao_gps": posicao.accuracy,
            "observacoes": (observacoes or "").strip() or None,
            "status": StatusAtendimento.EM_ANDAMENTO.value,
        })
        resultado = RegistroResultado(atendimento=Atendimento.model_validate(row))

        # 2. Envia as fotos uma a uma; falha de uma foto não derruba o registro
        for foto in fotos:
            file_name = f"{resultado.atendimento.id}/{int(time.time() * 1000)}_{secrets.token_hex(4)}.jpg"
            try:
                uploaded = self.api.upload(FOTOS_BUCKET, file_name, foto, "image/jpeg")
                link = self.api.insert("atendimento_fotos", {
                    "atendimento_id": resultado.atendimento.id,
                    "foto_url": uploaded["public_url"],
                })
                resultado.fotos_enviadas.append(AtendimentoFoto.model_validate(link))
            except BackendError as e:
                resultado.fotos_falhas += 1
                logger.warning("Foto %s não enviada: %s", file_name, e.message)

        logger.info(
            "Atendimento %s registrado (%d fotos, %d falhas)",
            resultado.atendimento.id, len(resultado.fotos_enviadas), resultado.fotos_falhas,
        )
        return resultado

import os
import logging
from typing import Callable, List

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("PhotoInbox")

# Pasta onde o Flet grava os arquivos enviados pelo navegador (modo web)
UPLOAD_DIR = os.getenv("TREKMED_UPLOAD_DIR", "uploads")

class PhotoInbox:
    """
    Fotos escolhidas no formulário de atendimento, já comprimidas.

    No desktop/mobile o FilePicker entrega o caminho local do arquivo.
    No navegador não há caminho: o arquivo é enviado para UPLOAD_DIR
    e lido de lá quando o upload termina.
    """

    def __init__(self, prepare: Callable[[bytes], bytes], upload_dir: str = UPLOAD_DIR):
        self.prepare = prepare
        self.upload_dir = upload_dir
        self.fotos: List[bytes] = []
        self.falhas: List[str] = []

    def add_path(self, name: str, path: str, remove: bool = False) -> bool:
        try:
            with open(path, "rb") as fh:
                content = fh.read()
        except OSError as e:
            logger.warning("Não foi possível ler a foto %s: %s", name, e)
            self.falhas.append(name)
            return False

        if remove:
            try:
                os.remove(path)
            except OSError as e:
                logger.warning("Arquivo temporário %s não removido: %s", path, e)

        if not content:
            logger.warning("Foto %s vazia", name)
            self.falhas.append(name)
            return False

        self.fotos.append(self.prepare(content))
        return True

    def add_uploaded(self, name: str) -> bool:
        # basename: o nome vem do navegador
        return self.add_path(name, os.path.join(self.upload_dir, os.path.basename(name)), remove=True)

    def remove(self, index: int):
        self.fotos.pop(index)

    def clear(self):
        self.fotos = []
        self.falhas = []

import os
import re
from pathlib import Path
from typing import Optional

# Diretório raiz dos objetos (um subdiretório por bucket)
STORAGE_DIR = Path(os.getenv("STORAGE_DIR", "storage"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")

BUCKETS = {"atendimento-fotos", "eventos-fotos", "participantes-fotos"}

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._\-/]+$")

class StorageError(ValueError):
    pass

def resolve_object_path(bucket: str, key: str, root: Optional[Path] = None) -> Path:
    """
    Valida bucket + chave e devolve o caminho no disco.
    Rejeita chaves vazias, absolutas ou com '..'.
    """
    if bucket not in BUCKETS:
        raise StorageError(f"Bucket '{bucket}' desconhecido.")
    if not key or key.startswith("/") or not _KEY_PATTERN.match(key):
        raise StorageError("Chave de objeto inválida.")
    if any(part in ("", ".", "..") for part in key.split("/")):
        raise StorageError("Chave de objeto inválida.")
    return (root or STORAGE_DIR) / bucket / key

def save_object(bucket: str, key: str, content: bytes, root: Optional[Path] = None) -> Path:
    target = resolve_object_path(bucket, key, root)
    if target.exists():
        raise FileExistsError(key)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    return target

def public_url(base_url: str, bucket: str, key: str) -> str:
    base = (PUBLIC_BASE_URL or base_url).rstrip("/")
    return f"{base}/storage/{bucket}/{key}"

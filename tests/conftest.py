"""
Fixtures compartilhadas: servidor FastAPI real sobre SQLite temporário
e clientes ApiClient apontando para ele via TestClient.
"""
import os
import tempfile
import uuid
from pathlib import Path

import pytest

# Ambiente configurado antes de importar o backend (lido em nível de módulo)
_TMP = Path(tempfile.mkdtemp(prefix="trekmed-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'server.db'}"
os.environ["STORAGE_DIR"] = str(_TMP / "storage")
os.environ["TREKMED_DB"] = str(_TMP / "client.db")
os.environ["ADMIN_EMAIL"] = "admin@trekmed.com"
os.environ["ADMIN_PASSWORD"] = "admin123"

from fastapi.testclient import TestClient  # noqa: E402

from backend.main import app  # noqa: E402
from trekmed.data.kv_store import KVStore  # noqa: E402
from trekmed.services.api_client import ApiClient  # noqa: E402
from trekmed.services.auth_service import AuthService  # noqa: E402
from trekmed.services.event_service import EventService  # noqa: E402

ADMIN_EMAIL = "admin@trekmed.com"
ADMIN_PASSWORD = "admin123"

def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"

@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client

@pytest.fixture
def kv_store(tmp_path):
    return KVStore(str(tmp_path / "kv.db"))

@pytest.fixture
def admin_api(client):
    api = ApiClient(http=client)
    api.set_token(api.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"])
    return api

@pytest.fixture
def make_evento(admin_api):
    def _make(status="ativo", nome=None):
        return admin_api.insert("eventos", {"nome": nome or unique("Evento"), "status": status})
    return _make

@pytest.fixture
def make_membro(client, admin_api):
    """Cria um usuário vinculado ao evento e devolve (email, senha, vinculo)"""
    def _make(evento_id, role="equipe_saude", permissoes=(), is_active=True):
        email = f"{unique('medico')}@trekmed.com"
        senha = "segredo123"
        usuario = admin_api.signup(email=email, password=senha, nome="Dra. Teste", crm="12345")
        vinculo = admin_api.insert("eventos_usuarios", {
            "evento_id": evento_id,
            "usuario_id": usuario["id"],
            "role": role,
            "is_active": is_active,
        })
        if permissoes:
            catalogo = {p["codigo"]: p["id"] for p in admin_api.select("permissoes")}
            for codigo in permissoes:
                admin_api.insert("eventos_usuarios_permissoes", {
                    "evento_usuario_id": vinculo["id"],
                    "permissao_id": catalogo[codigo],
                })
        return email, senha, vinculo
    return _make

@pytest.fixture
def make_session(client, kv_store):
    """AuthService + EventService autenticados com as credenciais informadas"""
    def _make(email, senha):
        api = ApiClient(http=client)
        auth = AuthService(api, kv_store)
        assert auth.sign_in(email, senha) is None
        return api, auth, EventService(api, auth, kv_store)
    return _make

@pytest.fixture
def make_participante(admin_api):
    def _make(evento_id, **fields):
        payload = {"nome": "Ana Trilheira", "nfc_tag_id": unique("TAG"), "evento_id": evento_id}
        payload.update(fields)
        return admin_api.insert("participantes", payload)
    return _make

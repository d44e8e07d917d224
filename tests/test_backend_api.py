"""Testes da API do servidor central (FastAPI + SQLite temporário)."""
import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, unique
from trekmed.services.api_client import ApiClient, BackendError

def test_root_lists_resources(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert "atendimentos" in body["resources"]

class TestAuth:
    def test_login_returns_token_without_password_hash(self, client):
        response = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        assert body["usuario"]["is_super_admin"] is True
        assert "password_hash" not in body["usuario"]

    def test_login_wrong_password(self, client):
        response = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": "errada"})
        assert response.status_code == 401

    def test_rest_requires_token(self, client):
        assert client.get("/rest/participantes").status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/rest/participantes", headers={"Authorization": "Bearer nao-existe"})
        assert response.status_code == 401

    def test_logout_invalidates_token(self, client):
        api = ApiClient(http=client)
        api.set_token(api.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"])
        api.logout()
        with pytest.raises(BackendError) as exc:
            api.me()
        assert exc.value.status_code == 401

    def test_signup_duplicate_email(self, admin_api):
        email = f"{unique('dup')}@trekmed.com"
        admin_api.signup(email=email, password="segredo123", nome="Primeiro")
        with pytest.raises(BackendError) as exc:
            admin_api.signup(email=email.upper(), password="segredo123", nome="Segundo")
        assert exc.value.status_code == 409

    def test_signup_short_password(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.signup(email=f"{unique('x')}@trekmed.com", password="123", nome="Curta")
        assert exc.value.status_code == 400

    def test_inactive_user_cannot_login(self, client, admin_api):
        email = f"{unique('inativo')}@trekmed.com"
        usuario = admin_api.signup(email=email, password="segredo123", nome="Inativo")
        admin_api.update("usuarios", usuario["id"], {"is_active": False})
        with pytest.raises(BackendError) as exc:
            ApiClient(http=client).login(email, "segredo123")
        assert exc.value.status_code == 401

class TestRest:
    def test_insert_update_delete(self, admin_api, make_evento):
        evento = make_evento()
        participante = admin_api.insert("participantes", {
            "nome": "Carlos", "nfc_tag_id": unique("TAG"), "evento_id": evento["id"], "peso": 80.5,
        })
        assert participante["id"]
        assert participante["peso"] == 80.5

        atualizado = admin_api.update("participantes", participante["id"], {"idade": 41})
        assert atualizado["idade"] == 41
        assert atualizado["nome"] == "Carlos"

        assert admin_api.delete("participantes", participante["id"]) == {"deleted": participante["id"]}
        assert admin_api.select("participantes", {"id": participante["id"]}) == []

    def test_update_missing_record(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.update("participantes", "nao-existe", {"idade": 1})
        assert exc.value.status_code == 404

    def test_unknown_resource(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.select("nao_existe")
        assert exc.value.status_code == 404

    def test_invalid_filter_column(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.select("participantes", {"coluna_fantasma": "x"})
        assert exc.value.status_code == 400

    def test_hidden_column_cannot_be_filtered(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.select("usuarios", {"password_hash": "x"})
        assert exc.value.status_code == 400

    def test_filters_and_order(self, admin_api, make_evento, make_participante):
        evento = make_evento()
        make_participante(evento["id"], nome="Bruna Alves", idade=30)
        make_participante(evento["id"], nome="Alice Souza", idade=25)
        make_participante(evento["id"], nome="Caio Lima")

        nomes = [p["nome"] for p in admin_api.select("participantes", {"evento_id": evento["id"]}, order="nome.asc")]
        assert nomes == ["Alice Souza", "Bruna Alves", "Caio Lima"]

        busca = admin_api.select("participantes", {"evento_id": evento["id"], "nome": "ilike.*souza*"})
        assert [p["nome"] for p in busca] == ["Alice Souza"]

        sem_idade = admin_api.select("participantes", {"evento_id": evento["id"], "idade": None})
        assert [p["nome"] for p in sem_idade] == ["Caio Lima"]

        diferentes = admin_api.select("participantes", {"evento_id": evento["id"], "nome": "neq.Caio Lima"})
        assert len(diferentes) == 2

        assert admin_api.count("participantes", {"evento_id": evento["id"]}) == 3

    def test_in_filter(self, admin_api, make_evento, make_participante):
        evento = make_evento()
        a = make_participante(evento["id"])
        b = make_participante(evento["id"])
        make_participante(evento["id"])
        rows = admin_api.select("participantes", {"id": [a["id"], b["id"]]})
        assert {r["id"] for r in rows} == {a["id"], b["id"]}

    def test_password_hash_never_returned(self, admin_api):
        for usuario in admin_api.select("usuarios"):
            assert "password_hash" not in usuario

    def test_non_super_admin_cannot_write_eventos(self, client, make_evento, make_membro):
        evento = make_evento()
        email, senha, _ = make_membro(evento["id"])
        api = ApiClient(http=client)
        api.set_token(api.login(email, senha)["access_token"])
        with pytest.raises(BackendError) as exc:
            api.update("eventos", evento["id"], {"status": "arquivado"})
        assert exc.value.status_code == 403
        # Leitura continua permitida
        assert api.select("eventos", {"id": evento["id"]})

def test_public_eventos_only_active(client, make_evento):
    ativo = make_evento(status="ativo")
    rascunho = make_evento(status="draft")
    ids = [e["id"] for e in client.get("/public/eventos").json()["data"]]
    assert ativo["id"] in ids
    assert rascunho["id"] not in ids

def test_detailed_atendimentos_join(admin_api, make_evento, make_participante):
    evento = make_evento()
    participante = make_participante(evento["id"], nome="Pedro")
    admin = admin_api.me()
    atendimento = admin_api.insert("atendimentos", {
        "participante_id": participante["id"],
        "medico_id": admin["id"],
        "evento_id": evento["id"],
        "descricao": "Entorse no tornozelo",
        "gravidade": "moderado",
        "latitude": -20.3,
        "longitude": -43.8,
    })
    admin_api.insert("atendimento_fotos", {"atendimento_id": atendimento["id"], "foto_url": "http://x/1.jpg"})

    rows = admin_api.detailed_atendimentos(evento_id=evento["id"])
    assert len(rows) == 1
    assert rows[0]["participante"]["nome"] == "Pedro"
    assert rows[0]["medico"]["id"] == admin["id"]
    assert "password_hash" not in rows[0]["medico"]
    assert [f["foto_url"] for f in rows[0]["fotos"]] == ["http://x/1.jpg"]

class TestStorage:
    def test_upload_and_download(self, client, admin_api):
        key = f"{unique('at')}/foto.jpg"
        result = admin_api.upload("atendimento-fotos", key, b"conteudo-jpeg")
        assert result["path"] == key
        assert result["public_url"].endswith(f"/storage/atendimento-fotos/{key}")

        response = client.get(f"/storage/atendimento-fotos/{key}")
        assert response.status_code == 200
        assert response.content == b"conteudo-jpeg"

    def test_upload_existing_object(self, admin_api):
        key = f"{unique('at')}/foto.jpg"
        admin_api.upload("atendimento-fotos", key, b"1")
        with pytest.raises(BackendError) as exc:
            admin_api.upload("atendimento-fotos", key, b"2")
        assert exc.value.status_code == 409

    def test_unknown_bucket(self, admin_api):
        with pytest.raises(BackendError) as exc:
            admin_api.upload("nao-existe", "a.jpg", b"1")
        assert exc.value.status_code == 400

    def test_missing_object(self, client):
        assert client.get("/storage/atendimento-fotos/nada/aqui.jpg").status_code == 404

class TestChanges:
    def test_cursor_and_scoped_changes(self, admin_api, make_evento, make_participante):
        evento = make_evento()
        outro = make_evento()
        cursor = admin_api.changes("participantes")["cursor"]

        p = make_participante(evento["id"])
        make_participante(outro["id"])
        admin_api.update("participantes", p["id"], {"idade": 20})

        result = admin_api.changes("participantes", since=cursor, evento_id=evento["id"])
        assert [(c["tipo"], c["registro_id"]) for c in result["changes"]] == [("INSERT", p["id"]), ("UPDATE", p["id"])]
        assert result["cursor"] > cursor

        vazio = admin_api.changes("participantes", since=result["cursor"], evento_id=evento["id"])
        assert vazio["changes"] == []
        assert vazio["cursor"] == result["cursor"]

    def test_photo_changes_carry_event(self, admin_api, make_evento, make_participante):
        evento = make_evento()
        participante = make_participante(evento["id"])
        admin = admin_api.me()
        atendimento = admin_api.insert("atendimentos", {
            "participante_id": participante["id"], "medico_id": admin["id"], "evento_id": evento["id"],
            "descricao": "Bolha", "latitude": 0, "longitude": 0,
        })
        cursor = admin_api.changes("atendimento_fotos")["cursor"]
        foto = admin_api.insert("atendimento_fotos", {"atendimento_id": atendimento["id"], "foto_url": "u"})

        result = admin_api.changes("atendimento_fotos", since=cursor, evento_id=evento["id"])
        assert [c["registro_id"] for c in result["changes"]] == [foto["id"]]
        assert result["changes"][0]["evento_id"] == evento["id"]

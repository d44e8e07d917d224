"""Regras de acesso por evento aplicadas pelo servidor (escrita e leitura)."""
import pytest

from conftest import unique
from trekmed.services.api_client import ApiClient, BackendError

def _login(client, email, senha) -> ApiClient:
    api = ApiClient(http=client)
    api.set_token(api.login(email, senha)["access_token"])
    return api

def _status_of(call, *args, **kwargs) -> int:
    with pytest.raises(BackendError) as exc:
        call(*args, **kwargs)
    return exc.value.status_code

@pytest.fixture
def catalogo(admin_api):
    return {p["codigo"]: p["id"] for p in admin_api.select("permissoes")}

@pytest.fixture
def dois_eventos(make_evento):
    return make_evento(), make_evento()

class TestEquipeWrites:
    def test_member_cannot_grant_itself_permissions(self, client, dois_eventos, make_membro, catalogo):
        evento, _ = dois_eventos
        email, senha, vinculo = make_membro(evento["id"])
        api = _login(client, email, senha)

        assert _status_of(api.insert, "eventos_usuarios_permissoes", {
            "evento_usuario_id": vinculo["id"], "permissao_id": catalogo["gerenciar_equipe"],
        }) == 403
        assert api.select("eventos_usuarios_permissoes", {"evento_usuario_id": vinculo["id"]}) == []

    def test_member_cannot_promote_itself(self, client, dois_eventos, make_membro):
        evento, _ = dois_eventos
        email, senha, vinculo = make_membro(evento["id"])
        api = _login(client, email, senha)

        assert _status_of(api.update, "eventos_usuarios", vinculo["id"], {"role": "admin_evento"}) == 403

    def test_member_cannot_join_foreign_event(self, client, dois_eventos, make_membro, admin_api):
        evento, outro = dois_eventos
        email, senha, vinculo = make_membro(evento["id"], permissoes=["gerenciar_equipe"])
        api = _login(client, email, senha)

        assert _status_of(api.insert, "eventos_usuarios", {
            "evento_id": outro["id"], "usuario_id": vinculo["usuario_id"], "role": "admin_evento",
        }) == 403
        assert admin_api.select("eventos_usuarios", {"evento_id": outro["id"]}) == []

    def test_manager_adds_member_to_own_event(self, client, dois_eventos, make_membro, catalogo):
        evento, _ = dois_eventos
        email, senha, _ = make_membro(evento["id"], permissoes=["gerenciar_equipe"])
        api = _login(client, email, senha)

        novo = api.signup(
            email=f"{unique('novo')}@trekmed.com", password="segredo123", nome="Enf. Nova",
            evento_id=evento["id"],
        )
        vinculo = api.insert("eventos_usuarios", {"evento_id": evento["id"], "usuario_id": novo["id"]})
        link = api.insert("eventos_usuarios_permissoes", {
            "evento_usuario_id": vinculo["id"], "permissao_id": catalogo["registrar_atendimento"],
        })
        assert link["evento_usuario_id"] == vinculo["id"]

    def test_manager_cannot_move_member_to_foreign_event(self, client, dois_eventos, make_membro):
        evento, outro = dois_eventos
        email, senha, _ = make_membro(evento["id"], permissoes=["gerenciar_equipe"])
        _, _, colega = make_membro(evento["id"])
        api = _login(client, email, senha)

        assert _status_of(api.update, "eventos_usuarios", colega["id"], {"evento_id": outro["id"]}) == 403

class TestSignup:
    def test_requires_team_permission(self, client, dois_eventos, make_membro):
        evento, _ = dois_eventos
        email, senha, _ = make_membro(evento["id"])
        api = _login(client, email, senha)

        assert _status_of(
            api.signup, email=f"{unique('x')}@trekmed.com", password="segredo123", nome="X",
            evento_id=evento["id"],
        ) == 403

    def test_permission_must_be_in_target_event(self, client, dois_eventos, make_membro):
        evento, outro = dois_eventos
        email, senha, _ = make_membro(evento["id"], permissoes=["gerenciar_equipe"])
        api = _login(client, email, senha)

        assert _status_of(
            api.signup, email=f"{unique('x')}@trekmed.com", password="segredo123", nome="X",
            evento_id=outro["id"],
        ) == 403
        assert _status_of(
            api.signup, email=f"{unique('x')}@trekmed.com", password="segredo123", nome="X",
        ) == 403

class TestParticipanteWrites:
    def test_requires_participant_permission(self, client, dois_eventos, make_membro, make_participante):
        evento, _ = dois_eventos
        email, senha, _ = make_membro(evento["id"], permissoes=["registrar_atendimento"])
        participante = make_participante(evento["id"])
        api = _login(client, email, senha)

        assert _status_of(api.insert, "participantes", {
            "nome": "Sem Permissão", "nfc_tag_id": unique("TAG"), "evento_id": evento["id"],
        }) == 403
        assert _status_of(api.update, "participantes", participante["id"], {"idade": 99}) == 403
        assert _status_of(api.delete, "participantes", participante["id"]) == 403

    def test_manager_limited_to_own_event(self, client, dois_eventos, make_membro, make_participante):
        evento, outro = dois_eventos
        email, senha, _ = make_membro(evento["id"], permissoes=["gerenciar_participantes"])
        proprio = make_participante(evento["id"])
        alheio = make_participante(outro["id"])
        api = _login(client, email, senha)

        assert api.update("participantes", proprio["id"], {"idade": 33})["idade"] == 33
        assert _status_of(api.update, "participantes", proprio["id"], {"evento_id": outro["id"]}) == 403
        assert _status_of(api.delete, "participantes", alheio["id"]) == 403

class TestAtendimentoWrites:
    def _payload(self, participante, medico_id, evento_id):
        return {
            "participante_id": participante["id"], "medico_id": medico_id, "evento_id": evento_id,
            "descricao": "Câimbra", "latitude": -20.3, "longitude": -43.8,
        }

    def test_non_member_cannot_register(self, client, dois_eventos, make_membro, make_participante):
        evento, outro = dois_eventos
        email, senha, vinculo = make_membro(evento["id"], permissoes=["registrar_atendimento"])
        alheio = make_participante(outro["id"])
        api = _login(client, email, senha)

        payload = self._payload(alheio, vinculo["usuario_id"], outro["id"])
        assert _status_of(api.insert, "atendimentos", payload) == 403

    def test_register_only_as_self(self, client, dois_eventos, make_membro, make_participante, admin_api):
        evento, _ = dois_eventos
        email, senha, vinculo = make_membro(evento["id"])
        participante = make_participante(evento["id"])
        api = _login(client, email, senha)

        outro_medico = admin_api.me()["id"]
        assert _status_of(api.insert, "atendimentos", self._payload(participante, outro_medico, evento["id"])) == 403

        criado = api.insert("atendimentos", self._payload(participante, vinculo["usuario_id"], evento["id"]))
        assert criado["evento_id"] == evento["id"]

    def test_status_change_requires_edit_permission(self, client, dois_eventos, make_membro, make_participante):
        evento, _ = dois_eventos
        email, senha, vinculo = make_membro(evento["id"])
        participante = make_participante(evento["id"])
        api = _login(client, email, senha)
        criado = api.insert("atendimentos", self._payload(participante, vinculo["usuario_id"], evento["id"]))

        assert _status_of(api.update, "atendimentos", criado["id"], {"status": "finalizado"}) == 403

        editor_email, editor_senha, _ = make_membro(evento["id"], permissoes=["editar_atendimento"])
        editor = _login(client, editor_email, editor_senha)
        assert editor.update("atendimentos", criado["id"], {"status": "encaminhado"})["status"] == "encaminhado"

class TestReadScope:
    @pytest.fixture
    def cenario(self, client, dois_eventos, make_membro, make_participante, admin_api):
        evento, outro = dois_eventos
        email, senha, _ = make_membro(evento["id"])
        proprio = make_participante(evento["id"])
        alheio = make_participante(outro["id"])
        admin = admin_api.me()
        admin_api.insert("atendimentos", {
            "participante_id": alheio["id"], "medico_id": admin["id"], "evento_id": outro["id"],
            "descricao": "Fora do escopo", "latitude": 0, "longitude": 0,
        })
        return _login(client, email, senha), evento, outro, proprio, alheio

    def test_rest_limited_to_member_events(self, cenario):
        api, evento, outro, proprio, alheio = cenario
        ids = {p["id"] for p in api.select("participantes")}
        assert proprio["id"] in ids
        assert alheio["id"] not in ids
        assert api.select("participantes", {"evento_id": outro["id"]}) == []
        assert api.count("atendimentos", {"evento_id": outro["id"]}) == 0
        assert [e["id"] for e in api.select("eventos")] == [evento["id"]]

    def test_detailed_atendimentos_limited(self, cenario):
        api, _, outro, _, _ = cenario
        assert api.detailed_atendimentos(evento_id=outro["id"]) == []
        assert api.detailed_atendimentos() == []

    def test_changes_limited(self, cenario, admin_api):
        api, _, outro, _, alheio = cenario
        cursor = api.changes("participantes")["cursor"]
        admin_api.update("participantes", alheio["id"], {"idade": 50})

        assert api.changes("participantes", since=cursor)["changes"] == []
        assert api.changes("participantes", since=cursor, evento_id=outro["id"])["changes"] == []
        assert admin_api.changes("participantes", since=cursor)["changes"]

    def test_usuarios_limited_to_colleagues(self, cenario, make_evento, make_membro, admin_api):
        api, evento, _, _, _ = cenario
        _, _, colega = make_membro(evento["id"])
        _, _, estranho = make_membro(make_evento()["id"])

        ids = {u["id"] for u in api.select("usuarios")}
        assert colega["usuario_id"] in ids
        assert api.me()["id"] in ids
        assert estranho["usuario_id"] not in ids

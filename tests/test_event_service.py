"""Resolução de eventos, seleção automática e permissões."""
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from trekmed.data.kv_store import PUBLIC_EVENT_KEY
from trekmed.models.permissao import GERENCIAR_EQUIPE, REGISTRAR_ATENDIMENTO
from trekmed.services.auth_service import SIGNED_IN, SIGNED_OUT

def test_single_event_is_auto_selected(make_evento, make_membro, make_session):
    evento = make_evento()
    email, senha, _ = make_membro(evento["id"], permissoes=[REGISTRAR_ATENDIMENTO])
    _, _, eventos = make_session(email, senha)

    carregados = eventos.load_eventos()

    assert [e.id for e in carregados] == [evento["id"]]
    assert eventos.selected_evento.id == evento["id"]
    assert eventos.landing_route() == "/dashboard"
    assert eventos.has_permission(REGISTRAR_ATENDIMENTO)
    assert not eventos.has_permission(GERENCIAR_EQUIPE)

def test_multiple_events_need_picker(make_evento, make_membro, make_session, admin_api):
    primeiro = make_evento()
    segundo = make_evento()
    email, senha, vinculo = make_membro(primeiro["id"])
    admin_api.insert("eventos_usuarios", {"evento_id": segundo["id"], "usuario_id": vinculo["usuario_id"]})
    _, _, eventos = make_session(email, senha)

    assert len(eventos.load_eventos()) == 2
    assert eventos.selected_evento is None
    assert eventos.landing_route() == "/eventos"

def test_public_preference_selects_among_many(make_evento, make_membro, make_session, admin_api, kv_store):
    primeiro = make_evento()
    segundo = make_evento()
    email, senha, vinculo = make_membro(primeiro["id"])
    admin_api.insert("eventos_usuarios", {"evento_id": segundo["id"], "usuario_id": vinculo["usuario_id"]})
    kv_store.set(PUBLIC_EVENT_KEY, segundo["id"])
    _, _, eventos = make_session(email, senha)

    eventos.load_eventos()
    assert eventos.selected_evento.id == segundo["id"]

def test_inactive_membership_hides_event(make_evento, make_membro, make_session):
    evento = make_evento()
    email, senha, _ = make_membro(evento["id"], is_active=False)
    _, _, eventos = make_session(email, senha)

    assert eventos.load_eventos() == []
    assert eventos.landing_route() == "/eventos"

def test_super_admin_sees_all_and_has_every_permission(make_evento, make_session):
    make_evento()
    make_evento()
    _, auth, eventos = make_session(ADMIN_EMAIL, ADMIN_PASSWORD)

    carregados = eventos.load_eventos()
    assert len(carregados) >= 2
    eventos.select_evento(carregados[0])
    assert eventos.is_event_admin
    assert eventos.membership.id == "super-admin"
    assert GERENCIAR_EQUIPE in eventos.permissions
    assert auth.is_super_admin

def test_sign_out_clears_selection(make_evento, make_membro, make_session):
    evento = make_evento()
    email, senha, _ = make_membro(evento["id"])
    _, auth, eventos = make_session(email, senha)
    eventos.load_eventos()
    assert eventos.selected_evento

    recebidos = []
    unsubscribe = auth.on_auth_state_change(lambda ev, usuario: recebidos.append(ev))
    auth.sign_out()
    unsubscribe()

    assert recebidos == [SIGNED_OUT]
    assert eventos.selected_evento is None
    assert eventos.permissions == set()
    assert auth.get_current_user() is None

def test_restore_session_from_kv_store(client, make_evento, make_membro, make_session, kv_store):
    from trekmed.services.api_client import ApiClient
    from trekmed.services.auth_service import AuthService

    evento = make_evento()
    email, senha, _ = make_membro(evento["id"])
    make_session(email, senha)

    auth = AuthService(ApiClient(http=client), kv_store)
    eventos_recebidos = []
    auth.on_auth_state_change(lambda ev, usuario: eventos_recebidos.append((ev, usuario.email)))
    assert auth.restore_session()
    assert eventos_recebidos == [(SIGNED_IN, email)]

def test_sign_in_wrong_password_returns_message(client, kv_store):
    from trekmed.services.api_client import ApiClient
    from trekmed.services.auth_service import AuthService

    auth = AuthService(ApiClient(http=client), kv_store)
    assert auth.sign_in(ADMIN_EMAIL, "errada") == "E-mail ou senha inválidos."
    assert auth.get_current_user() is None

def test_public_event_selection_persists(make_evento, make_session, kv_store):
    evento = make_evento()
    _, _, eventos = make_session(ADMIN_EMAIL, ADMIN_PASSWORD)

    eventos.select_public_event(evento["id"])
    assert kv_store.get(PUBLIC_EVENT_KEY) == evento["id"]
    assert evento["id"] in [e.id for e in eventos.public_eventos()]

    eventos.clear_public_event()
    assert kv_store.get(PUBLIC_EVENT_KEY) is None

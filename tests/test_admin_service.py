"""Operações exclusivas do Super Admin."""
from datetime import date

import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, unique
from trekmed.models.usuario import Usuario
from trekmed.services.admin_service import AdminService
from trekmed.services.errors import FormError, PermissionDenied

@pytest.fixture
def admin(make_session):
    api, auth, _ = make_session(ADMIN_EMAIL, ADMIN_PASSWORD)
    return AdminService(api, auth)

def test_archive_hides_from_public_listing(admin, client):
    evento = admin.salvar_evento(unique("Travessia"), status="ativo")

    def publicos():
        return [e["id"] for e in client.get("/public/eventos").json()["data"]]

    assert evento.id in publicos()
    assert admin.arquivar_evento(evento.id).status == "arquivado"
    assert evento.id not in publicos()
    assert admin.reativar_evento(evento.id).status == "ativo"
    assert evento.id in publicos()

def test_salvar_evento_validates(admin):
    with pytest.raises(FormError) as exc:
        admin.salvar_evento("   ")
    assert exc.value.field == "nome"
    with pytest.raises(FormError):
        admin.salvar_evento("Trilha", status="pausado")
    with pytest.raises(FormError):
        admin.salvar_evento("Trilha", data_inicio=date(2025, 5, 10), data_fim=date(2025, 5, 1))

def test_salvar_evento_insert_and_update(admin):
    criado = admin.salvar_evento(unique("Trilha"), data_inicio=date(2025, 5, 1), data_fim=date(2025, 5, 3))
    assert criado.status == "draft"
    assert criado.created_by == admin.auth.get_current_user().id

    editado = admin.salvar_evento("Trilha Renomeada", status="ativo", evento_id=criado.id)
    assert editado.id == criado.id
    assert editado.nome == "Trilha Renomeada"

def test_eventos_com_contagens(admin, make_evento, make_membro, make_participante):
    evento = make_evento()
    make_membro(evento["id"])
    make_participante(evento["id"])
    make_participante(evento["id"])
    arquivado = make_evento(status="arquivado")

    resumos = {r.evento.id: r for r in admin.eventos_com_contagens()}
    assert (resumos[evento["id"]].participantes, resumos[evento["id"]].equipe) == (2, 1)
    assert arquivado["id"] in resumos
    assert arquivado["id"] not in {r.evento.id for r in admin.eventos_com_contagens(incluir_arquivados=False)}

def test_estatisticas(admin, make_evento):
    antes = admin.estatisticas()
    make_evento()
    depois = admin.estatisticas()
    assert depois["eventos"] == antes["eventos"] + 1
    assert depois["eventos_ativos"] == antes["eventos_ativos"] + 1
    assert set(depois) == {"eventos", "eventos_ativos", "usuarios", "participantes", "atendimentos"}

def test_toggle_other_user(admin, make_evento, make_membro):
    evento = make_evento()
    email, _, _ = make_membro(evento["id"])
    resumo = next(r for r in admin.usuarios_com_eventos() if r.usuario.email == email)
    assert resumo.eventos == [evento["nome"]]

    promovido = admin.alternar_super_admin(resumo.usuario)
    assert promovido.is_super_admin
    desativado = admin.alternar_ativo(promovido)
    assert not desativado.is_active

def test_cannot_toggle_self(admin):
    eu = admin.auth.get_current_user()
    with pytest.raises(PermissionDenied):
        admin.alternar_ativo(eu)
    with pytest.raises(PermissionDenied):
        admin.alternar_super_admin(eu)

def test_requires_super_admin(make_evento, make_membro, make_session):
    evento = make_evento()
    email, senha, _ = make_membro(evento["id"])
    api, auth, _ = make_session(email, senha)
    service = AdminService(api, auth)

    with pytest.raises(PermissionDenied):
        service.estatisticas()
    with pytest.raises(PermissionDenied):
        service.salvar_evento("Evento")
    with pytest.raises(PermissionDenied):
        service.alternar_ativo(Usuario.model_validate(api.me()))

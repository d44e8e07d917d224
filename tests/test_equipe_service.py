"""Gestão da equipe do evento: criação de membros e permissões."""
import pytest

from conftest import unique
from trekmed.models.permissao import GERENCIAR_EQUIPE, REGISTRAR_ATENDIMENTO, VER_DASHBOARD
from trekmed.services.equipe_service import EquipeService
from trekmed.services.errors import FormError, PermissionDenied

@pytest.fixture
def gestor(make_evento, make_membro, make_session):
    """EquipeService de um admin do evento com gerenciar_equipe"""
    evento = make_evento()
    email, senha, vinculo = make_membro(evento["id"], role="admin_evento", permissoes=[GERENCIAR_EQUIPE])
    api, auth, eventos = make_session(email, senha)
    eventos.load_eventos()
    return EquipeService(api, eventos), evento, vinculo

def test_without_permission_is_denied(make_evento, make_membro, make_session):
    evento = make_evento()
    email, senha, _ = make_membro(evento["id"], permissoes=[REGISTRAR_ATENDIMENTO])
    api, _, eventos = make_session(email, senha)
    eventos.load_eventos()
    service = EquipeService(api, eventos)

    assert not service.pode_gerenciar()
    with pytest.raises(PermissionDenied):
        service.criar_membro(f"{unique('x')}@trekmed.com", "segredo123", "Fulano")
    assert len(service.listar_membros()) == 1

def test_criar_membro_with_permissions(gestor, admin_api):
    service, evento, vinculo_gestor = gestor
    email = f"{unique('enf')}@trekmed.com"

    membro = service.criar_membro(
        email, "segredo123", "Enf. Joana",
        permissoes=[REGISTRAR_ATENDIMENTO, VER_DASHBOARD], especialidade="Enfermagem",
    )

    assert membro.usuario.email == email
    assert membro.vinculo.evento_id == evento["id"]
    assert membro.vinculo.criado_por == vinculo_gestor["usuario_id"]
    assert membro.permissoes == {REGISTRAR_ATENDIMENTO, VER_DASHBOARD}
    links = admin_api.select("eventos_usuarios_permissoes", {"evento_usuario_id": membro.vinculo.id})
    assert len(links) == 2

    membros = {m.usuario.email: m for m in service.listar_membros()}
    assert membros[email].permissoes == {REGISTRAR_ATENDIMENTO, VER_DASHBOARD}
    assert len(membros) == 2

def test_existing_email_is_linked(gestor, make_evento, make_membro, admin_api):
    service, evento, _ = gestor
    outro = make_evento()
    email, _, vinculo_outro = make_membro(outro["id"])

    membro = service.criar_membro(email.upper(), "qualquer1", "Dra. Teste")

    assert membro.usuario.id == vinculo_outro["usuario_id"]
    assert admin_api.count("usuarios", {"email": email}) == 1

    with pytest.raises(FormError) as exc:
        service.criar_membro(email, "qualquer1", "Dra. Teste")
    assert exc.value.field == "email"

def test_criar_membro_validates_fields(gestor):
    service, _, _ = gestor
    with pytest.raises(FormError) as exc:
        service.criar_membro(f"{unique('a')}@trekmed.com", "segredo123", "  ")
    assert exc.value.field == "nome"
    with pytest.raises(FormError):
        service.criar_membro("sem-arroba", "segredo123", "Nome")
    with pytest.raises(FormError):
        service.criar_membro(f"{unique('a')}@trekmed.com", "segredo123", "Nome", role="dono")

def test_definir_permissoes_replaces_links(gestor, admin_api):
    service, _, _ = gestor
    membro = service.criar_membro(f"{unique('m')}@trekmed.com", "segredo123", "Dr. Paulo", permissoes=[VER_DASHBOARD])

    service.definir_permissoes(membro.vinculo.id, [REGISTRAR_ATENDIMENTO])

    atualizado = next(m for m in service.listar_membros() if m.vinculo.id == membro.vinculo.id)
    assert atualizado.permissoes == {REGISTRAR_ATENDIMENTO}
    assert len(admin_api.select("eventos_usuarios_permissoes", {"evento_usuario_id": membro.vinculo.id})) == 1

    with pytest.raises(FormError):
        service.definir_permissoes(membro.vinculo.id, ["voar"])

def test_alternar_ativo(gestor):
    service, _, _ = gestor
    membro = service.criar_membro(f"{unique('m')}@trekmed.com", "segredo123", "Dr. Caio")

    vinculo = service.alternar_ativo(membro)
    assert vinculo.is_active is False
    assert not next(m for m in service.listar_membros() if m.vinculo.id == vinculo.id).vinculo.is_active

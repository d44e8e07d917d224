import pytest

from trekmed.models.evento import EventoUsuario
from trekmed.models.usuario import Usuario
from trekmed.services.equipe_service import Membro
from trekmed.ui.widgets.equipe_manager import EquipeManager

class FakeEquipeService:
    def __init__(self, pode: bool):
        self.pode = pode

    def pode_gerenciar(self):
        return self.pode

    def listar_permissoes(self):
        return []

    def listar_membros(self):
        return [Membro(
            vinculo=EventoUsuario(evento_id="evento-1", usuario_id="u-1"),
            usuario=Usuario(email="enf@trekmed.com", nome="Enf. Paula"),
        )]

@pytest.mark.parametrize("pode", [True, False])
def test_add_button_follows_permission(pode):
    manager = EquipeManager(None, FakeEquipeService(pode))
    assert manager.btn_add.visible is pode

@pytest.mark.parametrize("pode", [True, False])
def test_member_actions_follow_permission(pode):
    manager = EquipeManager(None, FakeEquipeService(pode))
    manager.update = lambda: None
    manager.load_members()

    tile = manager.list_view.controls[0].content
    assert tile.title.value == "Enf. Paula"
    assert (tile.trailing is not None) is pode

import flet as ft

from trekmed.models.permissao import GERENCIAR_PARTICIPANTES
from trekmed.services.participante_service import ParticipanteService
from trekmed.ui.context import AppContext
from trekmed.ui.widgets.participante_form import ParticipanteForm
from trekmed.ui.widgets.participante_list import ParticipanteList

class ParticipantesPage(ft.Column):
    """Consulta e cadastro de participantes do evento ativo."""

    def __init__(self, page: ft.Page, ctx: AppContext):
        super().__init__()
        self.page_ref = page
        self.expand = True

        service = ParticipanteService(ctx.api, ctx.eventos)
        can_edit = ctx.eventos.has_permission(GERENCIAR_PARTICIPANTES)

        def on_form_action_success():
            """Chamado quando salva/exclui participante"""
            self.lista_view.load_data()
            self.tabs_control.selected_index = 0
            self.page_ref.update()

        def on_edit_request(participante):
            self.form_view.set_participante(participante)
            self.tabs_control.selected_index = 1
            self.page_ref.update()

        self.lista_view = ParticipanteList(page, service, can_edit, on_edit_click=on_edit_request)
        self.form_view = ParticipanteForm(page, service, on_save_success=on_form_action_success)

        tabs = [ft.Tab(text="Consulta", icon=ft.Icons.LIST, content=self.lista_view)]
        if can_edit:
            tabs.append(ft.Tab(text="Cadastro", icon=ft.Icons.PERSON_ADD, content=self.form_view))

        self.tabs_control = ft.Tabs(tabs=tabs, expand=True, animation_duration=300)
        self.controls = [self.tabs_control]

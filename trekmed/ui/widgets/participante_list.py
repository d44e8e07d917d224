import flet as ft
from typing import List
from trekmed.models.participante import Participante
from trekmed.services.api_client import BackendError
from trekmed.services.health import cor_indicativo
from trekmed.services.participante_service import ParticipanteService
from trekmed.ui.feedback import badge
from trekmed.ui.widgets.participante_profile import ParticipanteProfile

class ParticipanteList(ft.Column):
    def __init__(self, page: ft.Page, service: ParticipanteService, can_edit: bool, on_edit_click=None):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.can_edit = can_edit
        self.on_edit_click = on_edit_click

        self.participantes: List[Participante] = []
        self.dlg_details = None

        self.expand = True

        self.txt_search = ft.TextField(
            label="Buscar Participante",
            hint_text="Nome ou tag NFC",
            prefix_icon=ft.Icons.SEARCH,
            on_change=lambda e: self.render_list(),
            border_radius=10
        )

        self.list_view = ft.ListView(expand=True, spacing=10, padding=10)

        self.lbl_status = ft.Text("Carregando...", italic=True, color=ft.Colors.GREY_500)

        self.controls = [
            ft.Container(content=self.txt_search, padding=ft.padding.only(bottom=10)),
            self.lbl_status,
            self.list_view,
        ]

    def did_mount(self):
        self.load_data()

    def load_data(self):
        try:
            self.participantes = self.service.listar()
            self.render_list()
        except BackendError as e:
            self.lbl_status.value = f"Erro: {e.message}"
            self.lbl_status.visible = True
            self.update()

    def render_list(self):
        self.list_view.controls.clear()
        filtrados = self.service.filtrar(self.participantes, self.txt_search.value)

        if not filtrados:
            self.lbl_status.value = "Nenhum resultado."
            self.lbl_status.visible = True
        else:
            self.lbl_status.visible = False
            for p in filtrados:
                indicativo = (
                    badge(f"Saúde {p.indicativo_saude}", cor_indicativo(p.indicativo_saude))
                    if p.indicativo_saude else ft.Container()
                )
                alerta = (
                    ft.Icon(ft.Icons.GPP_MAYBE, color=ft.Colors.RED_600, size=18, tooltip=p.alergias)
                    if p.alergias else ft.Container()
                )

                menu_items = [
                    ft.PopupMenuItem(
                        text="Ficha",
                        icon=ft.Icons.INFO,
                        on_click=lambda _, x=p: self.open_details(x)
                    )
                ]
                if self.can_edit:
                    menu_items.append(ft.PopupMenuItem(
                        text="Editar",
                        icon=ft.Icons.EDIT,
                        on_click=lambda _, x=p: self.on_edit_click(x) if self.on_edit_click else None
                    ))

                self.list_view.controls.append(ft.Card(
                    elevation=2,
                    content=ft.Container(
                        padding=10,
                        content=ft.ListTile(
                            leading=ft.Icon(ft.Icons.PERSON, color=cor_indicativo(p.indicativo_saude) or ft.Colors.GREY, size=40),
                            title=ft.Row([ft.Text(p.nome, weight="bold"), alerta]),
                            subtitle=ft.Row([
                                ft.Text(f"Tag: {p.nfc_tag_id}", size=12),
                                indicativo,
                            ], vertical_alignment=ft.CrossAxisAlignment.CENTER),
                            trailing=ft.PopupMenuButton(icon=ft.Icons.MORE_VERT, items=menu_items),
                            on_click=lambda _, x=p: self.open_details(x)
                        )
                    )
                ))
        self.update()

    def open_details(self, participante: Participante):
        self.dlg_details = ft.AlertDialog(
            content=ft.Container(
                width=500,
                content=ft.Column([ParticipanteProfile(participante)], scroll=ft.ScrollMode.AUTO, height=500),
            ),
            actions=[ft.TextButton("Fechar", on_click=lambda e: self.page_ref.close(self.dlg_details))],
        )
        self.page_ref.open(self.dlg_details)

import flet as ft

from trekmed.models.evento import Evento
from trekmed.services.api_client import BackendError
from trekmed.services.event_service import EventService
from trekmed.ui.feedback import badge, show_snack
from trekmed.ui.theme import EVENTO_STATUS_CONFIG

class EventosPage(ft.Column):
    """Seletor de evento para quem tem acesso a mais de um."""

    def __init__(self, page: ft.Page, eventos: EventService, on_selected):
        super().__init__()
        self.page_ref = page
        self.eventos = eventos
        self.on_selected = on_selected
        self.expand = True

        self.list_view = ft.ListView(expand=True, spacing=10, padding=10)
        self.lbl_status = ft.Text("Carregando...", italic=True, color=ft.Colors.GREY_500)

        self.controls = [
            ft.Text("Selecione o evento", size=20, weight="bold", color=ft.Colors.BLUE_GREY_900),
            ft.Divider(),
            self.lbl_status,
            self.list_view,
        ]

    def did_mount(self):
        self.load_data()

    def load_data(self):
        try:
            eventos = self.eventos.load_eventos()
        except BackendError as e:
            self.lbl_status.value = f"Erro: {e.message}"
            self.update()
            return

        # Seleção automática (evento único ou preferência pública)
        if self.eventos.selected_evento:
            self.on_selected(self.eventos.selected_evento)
            return

        self.list_view.controls.clear()
        self.lbl_status.visible = not eventos
        self.lbl_status.value = "Você ainda não faz parte de nenhum evento."

        for evento in eventos:
            config = EVENTO_STATUS_CONFIG.get(evento.status, EVENTO_STATUS_CONFIG["draft"])
            self.list_view.controls.append(
                ft.Card(
                    content=ft.ListTile(
                        leading=ft.Icon(ft.Icons.TERRAIN, color=ft.Colors.GREEN_700, size=40),
                        title=ft.Text(evento.nome, weight="bold"),
                        subtitle=ft.Text(evento.descricao or "Sem descrição", max_lines=2),
                        trailing=badge(config["label"], config["color"]),
                        on_click=lambda _, ev=evento: self.choose(ev),
                    )
                )
            )
        self.update()

    def choose(self, evento: Evento):
        try:
            self.eventos.select_evento(evento)
        except BackendError as e:
            show_snack(self.page_ref, f"Erro ao abrir evento: {e.message}", is_error=True)
            return
        self.on_selected(evento)

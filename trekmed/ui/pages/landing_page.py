import flet as ft

from trekmed.models.evento import Evento
from trekmed.services.api_client import BackendError
from trekmed.services.event_service import EventService
from trekmed.ui.feedback import show_snack

def _periodo(evento: Evento) -> str:
    if evento.data_inicio and evento.data_fim:
        return f"{evento.data_inicio:%d/%m/%Y} a {evento.data_fim:%d/%m/%Y}"
    if evento.data_inicio:
        return f"A partir de {evento.data_inicio:%d/%m/%Y}"
    return "Datas a definir"

class LandingPage(ft.Column):
    """Página pública: eventos ativos, antes do login."""

    def __init__(self, page: ft.Page, eventos: EventService, on_event_chosen):
        super().__init__()
        self.page_ref = page
        self.eventos = eventos
        self.on_event_chosen = on_event_chosen
        self.expand = True
        self.horizontal_alignment = ft.CrossAxisAlignment.CENTER

        self.grid = ft.ResponsiveRow(spacing=15, run_spacing=15)
        self.lbl_status = ft.Text("Carregando eventos...", italic=True, color=ft.Colors.GREY_500)

        self.controls = [
            ft.Container(
                padding=30,
                content=ft.Column([
                    ft.Icon(ft.Icons.MEDICAL_SERVICES, size=60, color=ft.Colors.RED_700),
                    ft.Text("TrekMed", size=32, weight="bold"),
                    ft.Text("Suporte médico para eventos outdoor", color=ft.Colors.GREY_600),
                ], horizontal_alignment=ft.CrossAxisAlignment.CENTER),
            ),
            ft.Text("Escolha o evento", size=18, weight="bold", color=ft.Colors.GREY_700),
            self.lbl_status,
            ft.Container(content=self.grid, padding=20, width=1000),
        ]

    def did_mount(self):
        self.load_data()

    def load_data(self):
        try:
            eventos = self.eventos.public_eventos()
        except BackendError as e:
            self.lbl_status.value = f"Erro: {e.message}"
            self.update()
            return

        self.grid.controls.clear()
        self.lbl_status.visible = not eventos
        self.lbl_status.value = "Nenhum evento ativo no momento."

        for evento in eventos:
            selecionado = evento.id == self.eventos.public_selected_event_id
            self.grid.controls.append(
                ft.Container(
                    col={"xs": 12, "md": 6, "lg": 4},
                    content=ft.Card(
                        elevation=4 if selecionado else 1,
                        content=ft.Container(
                            padding=15,
                            border=ft.border.all(2, ft.Colors.RED_400) if selecionado else None,
                            border_radius=10,
                            on_click=lambda _, ev=evento: self.choose(ev),
                            content=ft.Column([
                                ft.Image(src=evento.foto_url, height=120, fit=ft.ImageFit.COVER, border_radius=8)
                                if evento.foto_url else ft.Icon(ft.Icons.TERRAIN, size=60, color=ft.Colors.GREEN_700),
                                ft.Text(evento.nome, size=18, weight="bold"),
                                ft.Text(evento.descricao or "", size=12, color=ft.Colors.GREY_700, max_lines=3),
                                ft.Row([
                                    ft.Icon(ft.Icons.CALENDAR_MONTH, size=14, color=ft.Colors.GREY_500),
                                    ft.Text(_periodo(evento), size=12, color=ft.Colors.GREY_600),
                                ]),
                            ], spacing=6),
                        ),
                    ),
                )
            )
        self.update()

    def choose(self, evento: Evento):
        self.eventos.select_public_event(evento.id)
        show_snack(self.page_ref, f"Evento selecionado: {evento.nome}")
        self.on_event_chosen(evento)

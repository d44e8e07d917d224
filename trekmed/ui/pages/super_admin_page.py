from datetime import date

import flet as ft

from trekmed.models.evento import Evento, EventoStatus
from trekmed.services.admin_service import AdminService
from trekmed.services.api_client import BackendError
from trekmed.services.errors import FormError, PermissionDenied
from trekmed.ui.feedback import badge, show_snack
from trekmed.ui.theme import EVENTO_STATUS_CONFIG

def _status_badge(status: str) -> ft.Container:
    config = EVENTO_STATUS_CONFIG.get(status, EVENTO_STATUS_CONFIG["draft"])
    return badge(config["label"], config["color"])

def _parse_date(text: str):
    text = (text or "").strip()
    if not text:
        return None
    try:
        dia, mes, ano = text.split("/")
        return date(int(ano), int(mes), int(dia))
    except ValueError:
        raise FormError(f"Data inválida: {text} (use dd/mm/aaaa)")

class SuperAdminOverview(ft.Column):
    """Números da plataforma e resumo de cada evento."""

    def __init__(self, page: ft.Page, service: AdminService):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.expand = True
        self.scroll = ft.ScrollMode.AUTO

        self.stats_row = ft.ResponsiveRow()
        self.eventos_view = ft.Column(spacing=8)

        self.controls = [
            ft.Row([
                ft.Text("Painel do Super Admin", size=22, weight="bold"),
                ft.Container(expand=True),
                ft.OutlinedButton("Eventos", icon=ft.Icons.EVENT, on_click=lambda e: page.go("/super-admin/eventos")),
                ft.OutlinedButton("Usuários", icon=ft.Icons.PEOPLE, on_click=lambda e: page.go("/super-admin/usuarios")),
            ], wrap=True),
            self.stats_row,
            ft.Divider(),
            ft.Text("Eventos", size=16, weight="bold"),
            self.eventos_view,
        ]

    def did_mount(self):
        try:
            stats = self.service.estatisticas()
            resumos = self.service.eventos_com_contagens()
        except (BackendError, PermissionDenied) as e:
            show_snack(self.page_ref, f"Erro: {e}", is_error=True)
            return

        labels = [
            ("eventos", "Eventos", ft.Icons.EVENT),
            ("eventos_ativos", "Ativos", ft.Icons.PLAY_CIRCLE),
            ("usuarios", "Usuários", ft.Icons.PEOPLE),
            ("participantes", "Participantes", ft.Icons.GROUPS),
            ("atendimentos", "Atendimentos", ft.Icons.MEDICAL_SERVICES),
        ]
        self.stats_row.controls = [
            ft.Container(
                col={"xs": 6, "md": 2.4},
                padding=12,
                border_radius=10,
                border=ft.border.all(1, ft.Colors.GREY_200),
                content=ft.Column([
                    ft.Icon(icon, color=ft.Colors.BLUE_700),
                    ft.Text(str(stats[key]), size=22, weight="bold"),
                    ft.Text(label, size=12, color=ft.Colors.GREY_600),
                ], spacing=2),
            )
            for key, label, icon in labels
        ]
        self.eventos_view.controls = [
            ft.Card(content=ft.ListTile(
                title=ft.Text(r.evento.nome, weight="bold"),
                subtitle=ft.Text(
                    f"{r.participantes} participantes • {r.equipe} na equipe • {r.atendimentos} atendimentos",
                    size=12,
                ),
                trailing=_status_badge(r.evento.status),
            ))
            for r in resumos
        ]
        self.update()

class SuperAdminEventos(ft.Column):
    def __init__(self, page: ft.Page, service: AdminService):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.editing_id = None
        self.dialog = None
        self.expand = True

        self.list_view = ft.ListView(expand=True, spacing=10, padding=10)

        self.txt_nome = ft.TextField(label="Nome do Evento *", autofocus=True)
        self.txt_descricao = ft.TextField(label="Descrição", multiline=True)
        self.txt_inicio = ft.TextField(label="Início (dd/mm/aaaa)")
        self.txt_fim = ft.TextField(label="Término (dd/mm/aaaa)")
        self.txt_foto = ft.TextField(label="URL da foto")
        self.dd_status = ft.Dropdown(
            label="Status",
            options=[ft.dropdown.Option(s.value, EVENTO_STATUS_CONFIG[s.value]["label"]) for s in EventoStatus],
            value=EventoStatus.DRAFT.value,
        )

        self.controls = [
            ft.Row([
                ft.Text("Gestão de Eventos", size=20, weight="bold"),
                ft.Container(expand=True),
                ft.IconButton(
                    icon=ft.Icons.ADD_CIRCLE, icon_color=ft.Colors.BLUE_700, icon_size=40,
                    tooltip="Novo Evento", on_click=lambda e: self.open_dialog(),
                ),
            ]),
            ft.Divider(),
            self.list_view,
        ]

    def did_mount(self):
        self.load_eventos()

    def load_eventos(self):
        self.list_view.controls.clear()
        try:
            resumos = self.service.eventos_com_contagens()
        except (BackendError, PermissionDenied) as e:
            show_snack(self.page_ref, f"Erro: {e}", is_error=True)
            return

        for r in resumos:
            arquivado = r.evento.status == EventoStatus.ARQUIVADO.value
            self.list_view.controls.append(ft.Card(content=ft.ListTile(
                leading=ft.Icon(ft.Icons.TERRAIN, color=ft.Colors.GREY_400 if arquivado else ft.Colors.GREEN_700, size=40),
                title=ft.Row([ft.Text(r.evento.nome, weight="bold"), _status_badge(r.evento.status)]),
                subtitle=ft.Text(f"{r.participantes} participantes • {r.atendimentos} atendimentos", size=12),
                trailing=ft.PopupMenuButton(icon=ft.Icons.MORE_VERT, items=[
                    ft.PopupMenuItem(text="Editar", icon=ft.Icons.EDIT, on_click=lambda _, ev=r.evento: self.open_dialog(ev)),
                    ft.PopupMenuItem(
                        text="Reativar" if arquivado else "Arquivar",
                        icon=ft.Icons.UNARCHIVE if arquivado else ft.Icons.ARCHIVE,
                        on_click=lambda _, ev=r.evento: self.toggle_archive(ev),
                    ),
                ]),
            )))
        self.update()

    def open_dialog(self, evento: Evento = None):
        self.editing_id = evento.id if evento else None
        self.txt_nome.value = evento.nome if evento else ""
        self.txt_descricao.value = (evento.descricao or "") if evento else ""
        self.txt_inicio.value = f"{evento.data_inicio:%d/%m/%Y}" if evento and evento.data_inicio else ""
        self.txt_fim.value = f"{evento.data_fim:%d/%m/%Y}" if evento and evento.data_fim else ""
        self.txt_foto.value = (evento.foto_url or "") if evento else ""
        self.dd_status.value = evento.status if evento else EventoStatus.DRAFT.value
        self.txt_nome.error_text = None

        self.dialog = ft.AlertDialog(
            title=ft.Text("Editar Evento" if evento else "Novo Evento"),
            content=ft.Column([
                self.txt_nome, self.txt_descricao,
                ft.Row([self.txt_inicio, self.txt_fim]),
                self.dd_status, self.txt_foto,
            ], tight=True, width=420),
            actions=[
                ft.TextButton("Cancelar", on_click=lambda e: self.page_ref.close(self.dialog)),
                ft.ElevatedButton("Salvar", on_click=self.save_evento),
            ],
        )
        self.page_ref.open(self.dialog)

    def save_evento(self, e):
        try:
            self.service.salvar_evento(
                nome=self.txt_nome.value,
                descricao=self.txt_descricao.value,
                data_inicio=_parse_date(self.txt_inicio.value),
                data_fim=_parse_date(self.txt_fim.value),
                status=self.dd_status.value,
                foto_url=self.txt_foto.value or None,
                evento_id=self.editing_id,
            )
        except FormError as ex:
            if ex.field == "nome":
                self.txt_nome.error_text = str(ex)
                self.txt_nome.update()
            else:
                show_snack(self.page_ref, str(ex), is_error=True)
            return
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro ao salvar: {ex}", is_error=True)
            return

        self.page_ref.close(self.dialog)
        self.load_eventos()
        show_snack(self.page_ref, "Evento salvo!")

    def toggle_archive(self, evento: Evento):
        try:
            if evento.status == EventoStatus.ARQUIVADO.value:
                self.service.reativar_evento(evento.id)
                msg = "Evento reativado."
            else:
                self.service.arquivar_evento(evento.id)
                msg = "Evento arquivado."
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro: {ex}", is_error=True)
            return
        self.load_eventos()
        show_snack(self.page_ref, msg)

class SuperAdminUsuarios(ft.Column):
    def __init__(self, page: ft.Page, service: AdminService):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.expand = True

        self.txt_search = ft.TextField(
            label="Buscar usuário", prefix_icon=ft.Icons.SEARCH, border_radius=10,
            on_change=lambda e: self.render_list(),
        )
        self.list_view = ft.ListView(expand=True, spacing=10, padding=10)
        self.resumos = []

        self.controls = [
            ft.Text("Usuários da Plataforma", size=20, weight="bold"),
            self.txt_search,
            self.list_view,
        ]

    def did_mount(self):
        self.load_usuarios()

    def load_usuarios(self):
        try:
            self.resumos = self.service.usuarios_com_eventos()
        except (BackendError, PermissionDenied) as e:
            show_snack(self.page_ref, f"Erro: {e}", is_error=True)
            return
        self.render_list()

    def render_list(self):
        termo = (self.txt_search.value or "").strip().lower()
        atual = self.service.auth.get_current_user()
        self.list_view.controls.clear()

        for r in self.resumos:
            u = r.usuario
            if termo and termo not in u.nome.lower() and termo not in u.email.lower():
                continue
            tags = [badge("Super Admin", ft.Colors.PURPLE_600)] if u.is_super_admin else []
            if not u.is_active:
                tags.append(badge("Inativo", ft.Colors.GREY_500))

            items = []
            if not atual or u.id != atual.id:
                items = [
                    ft.PopupMenuItem(
                        text="Remover Super Admin" if u.is_super_admin else "Tornar Super Admin",
                        icon=ft.Icons.SHIELD,
                        on_click=lambda _, x=u: self.toggle(self.service.alternar_super_admin, x),
                    ),
                    ft.PopupMenuItem(
                        text="Desativar" if u.is_active else "Reativar",
                        icon=ft.Icons.BLOCK if u.is_active else ft.Icons.CHECK_CIRCLE,
                        on_click=lambda _, x=u: self.toggle(self.service.alternar_ativo, x),
                    ),
                ]

            self.list_view.controls.append(ft.Card(content=ft.ListTile(
                leading=ft.CircleAvatar(content=ft.Text(u.nome[:1].upper())),
                title=ft.Row([ft.Text(u.nome, weight="bold"), *tags], wrap=True),
                subtitle=ft.Text(
                    f"{u.email} • " + (", ".join(r.eventos) if r.eventos else "Sem eventos ativos"),
                    size=12,
                ),
                trailing=ft.PopupMenuButton(icon=ft.Icons.MORE_VERT, items=items) if items else None,
            )))
        self.update()

    def toggle(self, action, usuario):
        try:
            action(usuario)
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro: {ex}", is_error=True)
            return
        self.load_usuarios()

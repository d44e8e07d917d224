import flet as ft
from trekmed.models.evento import EventoRole
from trekmed.services.api_client import BackendError
from trekmed.services.equipe_service import EquipeService, Membro
from trekmed.services.errors import FormError, PermissionDenied
from trekmed.ui.feedback import badge, show_snack

ROLE_LABELS = {
    EventoRole.ADMIN_EVENTO.value: "Admin do Evento",
    EventoRole.EQUIPE_SAUDE.value: "Equipe de Saúde",
}

class EquipeManager(ft.Column):
    def __init__(self, page: ft.Page, service: EquipeService):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.can_manage = service.pode_gerenciar()
        self.permissoes = []
        self.dialog = None
        self.expand = True

        # --- UI: Lista de Membros ---
        self.list_view = ft.ListView(expand=True, spacing=10, padding=10)

        self.btn_add = ft.IconButton(
            icon=ft.Icons.PERSON_ADD,
            icon_color=ft.Colors.BLUE_700,
            icon_size=40,
            tooltip="Novo Membro",
            visible=self.can_manage,
            on_click=lambda e: self.open_create_dialog()
        )

        self.controls = [
            ft.Row([
                ft.Text("Equipe do Evento", size=20, weight="bold", color=ft.Colors.BLUE_GREY_900),
                ft.Container(expand=True),
                self.btn_add
            ]),
            ft.Divider(),
            self.list_view,
        ]

        # --- UI: Campos do Dialog ---
        self.txt_nome = ft.TextField(label="Nome *", autofocus=True)
        self.txt_email = ft.TextField(label="E-mail *", keyboard_type=ft.KeyboardType.EMAIL)
        self.txt_senha = ft.TextField(label="Senha inicial *", password=True, can_reveal_password=True)
        self.txt_crm = ft.TextField(label="CRM")
        self.txt_especialidade = ft.TextField(label="Especialidade")
        self.txt_telefone = ft.TextField(label="Telefone", keyboard_type=ft.KeyboardType.PHONE)
        self.dd_role = ft.Dropdown(
            label="Papel",
            options=[ft.dropdown.Option(k, v) for k, v in ROLE_LABELS.items()],
            value=EventoRole.EQUIPE_SAUDE.value
        )
        self.checks = {}

    def did_mount(self):
        self.load_members()

    def load_members(self):
        self.list_view.controls.clear()
        try:
            self.permissoes = self.service.listar_permissoes()
            membros = self.service.listar_membros()
        except (BackendError, PermissionDenied) as e:
            self.list_view.controls.append(ft.Text(f"Erro: {e}", color=ft.Colors.RED_600))
            self.update()
            return

        for membro in membros:
            items = []
            if self.can_manage:
                items = [
                    ft.PopupMenuItem(
                        text="Permissões",
                        icon=ft.Icons.KEY,
                        on_click=lambda _, m=membro: self.open_permissions_dialog(m)
                    ),
                    ft.PopupMenuItem(
                        text="Desativar" if membro.vinculo.is_active else "Reativar",
                        icon=ft.Icons.BLOCK if membro.vinculo.is_active else ft.Icons.CHECK_CIRCLE,
                        on_click=lambda _, m=membro: self.toggle_active(m)
                    ),
                ]

            especialidade = membro.usuario.especialidade if membro.usuario else None
            self.list_view.controls.append(
                ft.Card(
                    content=ft.ListTile(
                        leading=ft.Icon(
                            ft.Icons.ADMIN_PANEL_SETTINGS if membro.is_admin else ft.Icons.MEDICAL_SERVICES,
                            color=ft.Colors.BLUE_700 if membro.vinculo.is_active else ft.Colors.GREY_400,
                            size=40
                        ),
                        title=ft.Text(membro.nome, weight="bold"),
                        subtitle=ft.Column([
                            ft.Text(especialidade or (membro.usuario.email if membro.usuario else ""), size=12),
                            ft.Row([
                                badge(ROLE_LABELS.get(membro.vinculo.role, membro.vinculo.role), ft.Colors.BLUE_GREY_600),
                                badge("Ativo" if membro.vinculo.is_active else "Inativo",
                                      ft.Colors.GREEN_600 if membro.vinculo.is_active else ft.Colors.GREY_500),
                                ft.Text(f"{len(membro.permissoes)} permissões", size=11, color=ft.Colors.GREY_600),
                            ], wrap=True),
                        ], spacing=4),
                        trailing=ft.PopupMenuButton(icon=ft.Icons.MORE_VERT, items=items) if items else None,
                    )
                )
            )
        self.update()

    def _permission_checks(self, selecionadas):
        self.checks = {
            p.codigo: ft.Checkbox(label=p.descricao or p.codigo, value=p.codigo in selecionadas)
            for p in self.permissoes
        }
        return list(self.checks.values())

    def _selected_codes(self):
        return [codigo for codigo, check in self.checks.items() if check.value]

    def open_create_dialog(self):
        for field in (self.txt_nome, self.txt_email, self.txt_senha, self.txt_crm, self.txt_especialidade, self.txt_telefone):
            field.value = ""
            field.error_text = None
        self.dd_role.value = EventoRole.EQUIPE_SAUDE.value

        self.dialog = ft.AlertDialog(
            title=ft.Text("Novo Membro"),
            content=ft.Column([
                self.txt_nome,
                self.txt_email,
                self.txt_senha,
                ft.Row([self.txt_crm, self.txt_especialidade]),
                self.txt_telefone,
                self.dd_role,
                ft.Text("Permissões", weight="bold"),
                *self._permission_checks(set()),
            ], tight=True, width=420, scroll=ft.ScrollMode.AUTO),
            actions=[
                ft.TextButton("Cancelar", on_click=self.close_dialog),
                ft.ElevatedButton("Salvar", on_click=self.save_member),
            ],
        )
        self.page_ref.open(self.dialog)

    def close_dialog(self, e):
        self.page_ref.close(self.dialog)

    def save_member(self, e):
        try:
            membro = self.service.criar_membro(
                email=self.txt_email.value,
                senha=self.txt_senha.value,
                nome=self.txt_nome.value,
                role=self.dd_role.value,
                permissoes=self._selected_codes(),
                crm=self.txt_crm.value or None,
                especialidade=self.txt_especialidade.value or None,
                telefone=self.txt_telefone.value or None,
            )
        except FormError as ex:
            target = {"nome": self.txt_nome, "email": self.txt_email}.get(ex.field)
            if target:
                target.error_text = str(ex)
                target.update()
            else:
                show_snack(self.page_ref, str(ex), is_error=True)
            return
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro ao criar membro: {ex}", is_error=True)
            return

        self.close_dialog(None)
        self.load_members()
        show_snack(self.page_ref, f"{membro.nome} adicionado à equipe!")

    def open_permissions_dialog(self, membro: Membro):
        self.dialog = ft.AlertDialog(
            title=ft.Text(f"Permissões: {membro.nome}"),
            content=ft.Column(self._permission_checks(membro.permissoes), tight=True, width=400),
            actions=[
                ft.TextButton("Cancelar", on_click=self.close_dialog),
                ft.ElevatedButton("Salvar", on_click=lambda e, m=membro: self.save_permissions(m)),
            ],
        )
        self.page_ref.open(self.dialog)

    def save_permissions(self, membro: Membro):
        try:
            self.service.definir_permissoes(membro.vinculo.id, self._selected_codes())
        except (FormError, PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro: {ex}", is_error=True)
            return
        self.close_dialog(None)
        self.load_members()
        show_snack(self.page_ref, "Permissões atualizadas.")

    def toggle_active(self, membro: Membro):
        try:
            self.service.alternar_ativo(membro)
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro: {ex}", is_error=True)
            return
        self.load_members()

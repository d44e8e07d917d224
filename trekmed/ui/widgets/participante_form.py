import flet as ft
import logging
from trekmed.models.participante import Participante
from trekmed.services.api_client import BackendError
from trekmed.services.errors import FormError, PermissionDenied
from trekmed.services.participante_service import ParticipanteService
from trekmed.ui.feedback import show_snack

logger = logging.getLogger("ParticipanteForm")

TIPOS_SANGUINEOS = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]

class ParticipanteForm(ft.Column):
    def __init__(self, page: ft.Page, service: ParticipanteService, on_save_success=None):
        super().__init__()
        self.page_ref = page
        self.service = service
        self.on_save_success = on_save_success

        self.current_id = None

        self.scroll = ft.ScrollMode.AUTO
        self.expand = True

        self.lbl_title = ft.Text("Novo Participante", size=24, weight="bold", color=ft.Colors.BLUE_GREY_900)

        # Campos de texto indexados pelo nome da coluna
        self.fields = {
            "nome": ft.TextField(label="Nome Completo *"),
            "nfc_tag_id": ft.TextField(label="ID da Tag NFC *", prefix_icon=ft.Icons.NFC),
            "cpf": ft.TextField(label="CPF", keyboard_type=ft.KeyboardType.NUMBER),
            "idade": ft.TextField(label="Idade", keyboard_type=ft.KeyboardType.NUMBER),
            "telefone": ft.TextField(label="Telefone", keyboard_type=ft.KeyboardType.PHONE),
            "cidade_estado": ft.TextField(label="Cidade/UF"),
            "equipe_familia": ft.TextField(label="Equipe/Família"),
            "contato_emergencia_nome": ft.TextField(label="Contato de Emergência"),
            "telefone_emergencia": ft.TextField(label="Telefone de Emergência", keyboard_type=ft.KeyboardType.PHONE),
            "peso": ft.TextField(label="Peso (kg)", keyboard_type=ft.KeyboardType.NUMBER),
            "altura": ft.TextField(label="Altura (m)", keyboard_type=ft.KeyboardType.NUMBER),
            "biotipo": ft.TextField(label="Biotipo"),
            "atividade_fisica_semanal": ft.TextField(label="Atividade física semanal"),
            "plano_saude": ft.TextField(label="Plano de Saúde"),
            "alergias": ft.TextField(label="Alergias", multiline=True, min_lines=2),
            "condicoes_medicas": ft.TextField(label="Condições médicas", multiline=True, min_lines=2),
            "medicamentos": ft.TextField(label="Medicações em uso", multiline=True, min_lines=2),
            "cirurgias": ft.TextField(label="Cirurgias", multiline=True),
            "observacao_especial": ft.TextField(label="Observação especial", multiline=True),
            "outras_informacoes_medicas": ft.TextField(label="Outras informações médicas", multiline=True),
        }
        self.dd_tipo_sanguineo = ft.Dropdown(
            label="Tipo Sanguíneo",
            options=[ft.dropdown.Option(t) for t in TIPOS_SANGUINEOS],
        )
        self.dd_indicativo = ft.Dropdown(
            label="Indicativo de Saúde (1-5)",
            options=[ft.dropdown.Option(str(n), f"{n}") for n in range(1, 6)],
        )

        self.btn_save = ft.ElevatedButton(
            text="Salvar Participante",
            icon=ft.Icons.SAVE,
            style=ft.ButtonStyle(
                color=ft.Colors.WHITE,
                bgcolor=ft.Colors.BLUE_700,
                padding=15,
                shape=ft.RoundedRectangleBorder(radius=8),
            ),
            on_click=self.save_participante,
            expand=True
        )

        self.btn_clear = ft.OutlinedButton(
            text="Limpar / Novo",
            icon=ft.Icons.ADD,
            on_click=lambda e: self.clear_form(),
            visible=False
        )

        self.btn_delete = ft.IconButton(
            icon=ft.Icons.DELETE,
            icon_color=ft.Colors.RED_600,
            tooltip="Excluir Participante",
            visible=False,
            on_click=self.confirm_delete
        )

        self.loading_indicator = ft.ProgressBar(width=None, visible=False, color=ft.Colors.BLUE_700)

        f = self.fields
        self.controls = [
            ft.Row([
                self.lbl_title,
                ft.Container(expand=True),
                self.btn_clear,
                self.btn_delete
            ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),

            ft.Divider(),

            ft.Text("Identificação", weight="bold", color=ft.Colors.GREY_700),
            ft.ResponsiveRow([
                ft.Column(col={"xs": 12, "md": 8}, controls=[f["nome"]]),
                ft.Column(col={"xs": 12, "md": 4}, controls=[f["nfc_tag_id"]]),
                ft.Column(col={"xs": 12, "md": 4}, controls=[f["cpf"]]),
                ft.Column(col={"xs": 6, "md": 2}, controls=[f["idade"]]),
                ft.Column(col={"xs": 6, "md": 6}, controls=[f["cidade_estado"]]),
            ]),

            ft.Divider(height=20, color=ft.Colors.TRANSPARENT),
            ft.Text("Contato", weight="bold", color=ft.Colors.GREY_700),
            ft.ResponsiveRow([
                ft.Column(col={"xs": 12, "md": 6}, controls=[f["telefone"]]),
                ft.Column(col={"xs": 12, "md": 6}, controls=[f["equipe_familia"]]),
                ft.Column(col={"xs": 12, "md": 6}, controls=[f["contato_emergencia_nome"]]),
                ft.Column(col={"xs": 12, "md": 6}, controls=[f["telefone_emergencia"]]),
            ]),

            ft.Divider(height=20, color=ft.Colors.TRANSPARENT),
            ft.Text("Saúde", weight="bold", color=ft.Colors.GREY_700),
            ft.ResponsiveRow([
                ft.Column(col={"xs": 6, "md": 3}, controls=[self.dd_tipo_sanguineo]),
                ft.Column(col={"xs": 6, "md": 3}, controls=[f["peso"]]),
                ft.Column(col={"xs": 6, "md": 3}, controls=[f["altura"]]),
                ft.Column(col={"xs": 6, "md": 3}, controls=[self.dd_indicativo]),
                ft.Column(col={"xs": 12, "md": 4}, controls=[f["biotipo"]]),
                ft.Column(col={"xs": 12, "md": 4}, controls=[f["atividade_fisica_semanal"]]),
                ft.Column(col={"xs": 12, "md": 4}, controls=[f["plano_saude"]]),
            ]),
            f["alergias"],
            f["condicoes_medicas"],
            f["medicamentos"],
            f["cirurgias"],
            f["observacao_especial"],
            f["outras_informacoes_medicas"],

            ft.Divider(height=30),

            self.loading_indicator,
            ft.Row([self.btn_save], alignment=ft.MainAxisAlignment.CENTER)
        ]

    def set_participante(self, participante: Participante):
        self.current_id = participante.id

        self.lbl_title.value = "Editar Participante"
        self.btn_save.text = "Atualizar Dados"
        self.btn_save.style.bgcolor = ft.Colors.ORANGE_700

        self.btn_delete.visible = True
        self.btn_clear.visible = True

        for name, field in self.fields.items():
            value = getattr(participante, name)
            field.value = "" if value is None else str(value)
            field.error_text = None
        self.dd_tipo_sanguineo.value = participante.tipo_sanguineo
        self.dd_indicativo.value = str(participante.indicativo_saude) if participante.indicativo_saude else None

        self.update()

    def clear_form(self):
        self.current_id = None

        self.lbl_title.value = "Novo Participante"
        self.btn_save.text = "Salvar Participante"
        self.btn_save.style.bgcolor = ft.Colors.BLUE_700
        self.btn_delete.visible = False
        self.btn_clear.visible = False

        for field in self.fields.values():
            field.value = ""
            field.error_text = None
        self.dd_tipo_sanguineo.value = None
        self.dd_indicativo.value = None

        self.update()

    def confirm_delete(self, e):
        dlg = ft.AlertDialog(
            title=ft.Text("Confirmar Exclusão"),
            content=ft.Text("Tem certeza? O participante será removido do evento."),
            actions=[
                ft.TextButton("Cancelar", on_click=lambda e: self.page_ref.close(dlg)),
                ft.TextButton("Excluir", on_click=lambda e: self.execute_delete(dlg), style=ft.ButtonStyle(color=ft.Colors.RED)),
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )
        self.page_ref.open(dlg)

    def execute_delete(self, dlg):
        self.page_ref.close(dlg)
        if not self.current_id:
            return
        try:
            self.service.excluir(self.current_id)
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro ao excluir: {ex}", is_error=True)
            return
        show_snack(self.page_ref, "Participante excluído.")
        self.clear_form()
        if self.on_save_success:
            self.on_save_success()

    def form_values(self):
        values = {name: field.value for name, field in self.fields.items()}
        values["tipo_sanguineo"] = self.dd_tipo_sanguineo.value
        values["indicativo_saude"] = self.dd_indicativo.value
        return values

    def save_participante(self, e):
        for field in self.fields.values():
            field.error_text = None

        self.btn_save.disabled = True
        self.loading_indicator.visible = True
        self.update()

        try:
            self.service.salvar(self.form_values(), self.current_id)

            action = "atualizado" if self.current_id else "cadastrado"
            show_snack(self.page_ref, f"Participante {action} com sucesso!")
            self.clear_form()

            if self.on_save_success:
                self.on_save_success()

        except FormError as ex:
            if ex.field in self.fields:
                self.fields[ex.field].error_text = str(ex)
            show_snack(self.page_ref, str(ex), is_error=True)
        except (PermissionDenied, BackendError) as ex:
            logger.warning("Falha ao salvar participante: %s", ex)
            show_snack(self.page_ref, f"Erro ao salvar: {ex}", is_error=True)

        finally:
            self.btn_save.disabled = False
            self.loading_indicator.visible = False
            self.update()

import base64
import logging
import threading
from typing import Optional

import flet as ft

from trekmed.models.atendimento import Gravidade
from trekmed.models.participante import Participante
from trekmed.services.api_client import BackendError
from trekmed.services.atendimento_service import AtendimentoService
from trekmed.services.errors import FormError, PermissionDenied
from trekmed.services.geolocation import GeolocationError, Position, acquire_position
from trekmed.services.photo_inbox import PhotoInbox
from trekmed.ui.context import AppContext
from trekmed.ui.feedback import show_snack
from trekmed.ui.flet_geolocation import FletGeolocationProvider
from trekmed.ui.theme import GRAVIDADE_CONFIG
from trekmed.ui.widgets.participante_profile import ParticipanteProfile

logger = logging.getLogger("AtendimentoPage")

def _message_card(icon, color, title: str, message: str, actions=None) -> ft.Container:
    return ft.Container(
        padding=30,
        alignment=ft.alignment.center,
        content=ft.Column([
            ft.Icon(icon, size=64, color=color),
            ft.Text(title, size=22, weight="bold"),
            ft.Text(message, color=ft.Colors.GREY_600, text_align=ft.TextAlign.CENTER),
            ft.Row(actions or [], alignment=ft.MainAxisAlignment.CENTER, wrap=True),
        ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, width=420),
    )

class AtendimentoPage(ft.Column):
    """Registro de atendimento aberto pela leitura da tag NFC (/a?t=<tag>)."""

    def __init__(self, page: ft.Page, ctx: AppContext, tag_id: Optional[str]):
        super().__init__()
        self.page_ref = page
        self.ctx = ctx
        self.tag_id = tag_id
        self.service = AtendimentoService(ctx.api, ctx.auth)
        self.expand = True
        self.scroll = ft.ScrollMode.AUTO
        self.horizontal_alignment = ft.CrossAxisAlignment.CENTER

        self.participante: Optional[Participante] = None
        self.posicao: Optional[Position] = None
        self.inbox = PhotoInbox(self.service.prepare_photo)
        self.provider: Optional[FletGeolocationProvider] = None

        # --- Formulário ---
        self.lbl_gps = ft.Text("Obtendo localização...", size=12, color=ft.Colors.GREY_600)
        self.gps_icon = ft.ProgressRing(width=16, height=16)

        self.txt_descricao = ft.TextField(label="Descrição do atendimento *", multiline=True, min_lines=3)
        self.rg_gravidade = ft.RadioGroup(
            value=Gravidade.LEVE.value,
            content=ft.Row([
                ft.Radio(value=g.value, label=f"{GRAVIDADE_CONFIG[g.value]['icon']} {GRAVIDADE_CONFIG[g.value]['label']}")
                for g in Gravidade
            ], wrap=True),
        )
        self.txt_observacoes = ft.TextField(label="Observações", multiline=True, min_lines=2)

        self.file_picker = ft.FilePicker(on_result=self.on_files_picked, on_upload=self.on_upload)
        self.photo_row = ft.Row(wrap=True, spacing=8)
        self.btn_photos = ft.OutlinedButton(
            "Adicionar fotos",
            icon=ft.Icons.CAMERA_ALT,
            on_click=lambda e: self.file_picker.pick_files(allow_multiple=True, file_type=ft.FilePickerFileType.IMAGE),
        )

        self.btn_submit = ft.ElevatedButton(
            text="Registrar Atendimento",
            icon=ft.Icons.SAVE,
            style=ft.ButtonStyle(
                color=ft.Colors.WHITE,
                bgcolor=ft.Colors.RED_700,
                padding=15,
                shape=ft.RoundedRectangleBorder(radius=8),
            ),
            disabled=True,
            on_click=self.submit,
        )
        self.loading_indicator = ft.ProgressBar(visible=False, color=ft.Colors.RED_700)

        self.body = ft.Container(width=640)
        self.controls = [self.body]

    def did_mount(self):
        self.page_ref.overlay.append(self.file_picker)
        self.page_ref.update()
        self.load()

    def will_unmount(self):
        if self.file_picker in self.page_ref.overlay:
            self.page_ref.overlay.remove(self.file_picker)
        if self.provider:
            self.provider.dispose()

    # --- Etapas ---
    def load(self):
        if not self.ctx.auth.get_current_user():
            self.ctx.pending_route = self.page_ref.route
            self.show_message(
                ft.Icons.LOCK, ft.Colors.GREY_700, "Acesso restrito",
                "Faça login para registrar o atendimento deste participante.",
                [ft.ElevatedButton("Entrar", icon=ft.Icons.LOGIN, on_click=lambda e: self.page_ref.go("/login"))],
            )
            return

        try:
            evento = self.ctx.eventos.selected_evento
            self.participante = self.service.resolve_tag(self.tag_id, evento.id if evento else None)
            if not self.participante:
                self.show_message(
                    ft.Icons.CANCEL, ft.Colors.RED_600, "Participante não encontrado",
                    f"Nenhum participante com a tag '{self.tag_id or ''}'.",
                    [ft.TextButton("Ir para o dashboard", on_click=lambda e: self.page_ref.go("/dashboard"))],
                )
                return
            self.service.check_access(self.participante)
        except PermissionDenied as e:
            self.show_message(ft.Icons.BLOCK, ft.Colors.RED_600, "Sem acesso", str(e))
            return
        except BackendError as e:
            title = "Sem conexão" if e.offline else "Erro no servidor"
            self.show_message(ft.Icons.CLOUD_OFF, ft.Colors.ORANGE_700, title, e.message)
            return

        self.show_form()
        threading.Thread(target=self.acquire_gps, daemon=True).start()

    def acquire_gps(self):
        try:
            self.provider = FletGeolocationProvider(self.page_ref)
            self.posicao = acquire_position(self.provider)
            self.lbl_gps.value = self.posicao.describe()
            self.gps_icon = ft.Icon(ft.Icons.LOCATION_ON, color=ft.Colors.GREEN_700, size=16)
        except GeolocationError as e:
            self.lbl_gps.value = str(e)
            self.lbl_gps.color = ft.Colors.RED_600
            self.gps_icon = ft.Icon(ft.Icons.LOCATION_OFF, color=ft.Colors.RED_600, size=16)
        self.gps_row.controls = [self.gps_icon, self.lbl_gps]
        self.btn_submit.disabled = self.posicao is None
        self.update()

    def show_message(self, icon, color, title, message, actions=None):
        self.body.content = _message_card(icon, color, title, message, actions)
        self.update()

    def show_form(self):
        self.gps_row = ft.Row([self.gps_icon, self.lbl_gps])
        self.body.content = ft.Column([
            ft.Card(content=ParticipanteProfile(self.participante)),
            ft.Container(
                padding=10,
                border_radius=8,
                bgcolor=ft.Colors.GREY_100,
                content=self.gps_row,
            ),
            ft.Text("Novo Atendimento", size=20, weight="bold"),
            self.txt_descricao,
            ft.Text("Gravidade", weight="bold", color=ft.Colors.GREY_700),
            self.rg_gravidade,
            self.txt_observacoes,
            ft.Row([self.btn_photos]),
            self.photo_row,
            ft.Divider(height=20),
            self.loading_indicator,
            ft.Row([self.btn_submit], alignment=ft.MainAxisAlignment.CENTER),
        ], spacing=12)
        self.update()

    # --- Fotos ---
    def on_files_picked(self, e: ft.FilePickerResultEvent):
        pendentes = []
        for f in e.files or []:
            if f.path:
                self.inbox.add_path(f.name, f.path)
            else:
                # Navegador: sem caminho local, o arquivo sobe para a pasta de uploads
                pendentes.append(ft.FilePickerUploadFile(f.name, upload_url=self.page_ref.get_upload_url(f.name, 600)))
        if pendentes:
            self.file_picker.upload(pendentes)
        self.report_failures()
        self.render_photos()

    def on_upload(self, e: ft.FilePickerUploadEvent):
        if e.error:
            logger.warning("Upload de %s falhou: %s", e.file_name, e.error)
            self.inbox.falhas.append(e.file_name)
        elif e.progress is not None and e.progress >= 1:
            self.inbox.add_uploaded(e.file_name)
        else:
            return
        self.report_failures()
        self.render_photos()

    def report_failures(self):
        if self.inbox.falhas:
            nomes = ", ".join(self.inbox.falhas)
            self.inbox.falhas = []
            show_snack(self.page_ref, f"Não foi possível ler: {nomes}", is_error=True)

    def render_photos(self):
        self.photo_row.controls = [
            ft.Stack([
                ft.Image(src_base64=base64.b64encode(foto).decode(), width=90, height=90, fit=ft.ImageFit.COVER, border_radius=8),
                ft.IconButton(ft.Icons.CLOSE, icon_size=14, right=0, top=0, on_click=lambda _, i=i: self.remove_photo(i)),
            ])
            for i, foto in enumerate(self.inbox.fotos)
        ]
        self.update()

    def remove_photo(self, index: int):
        self.inbox.remove(index)
        self.render_photos()

    # --- Envio ---
    def submit(self, e):
        self.txt_descricao.error_text = None
        self.btn_submit.disabled = True
        self.loading_indicator.visible = True
        self.update()

        try:
            resultado = self.service.registrar(
                self.participante,
                self.posicao,
                self.txt_descricao.value,
                self.rg_gravidade.value,
                self.txt_observacoes.value,
                self.inbox.fotos,
            )
        except FormError as ex:
            if ex.field == "descricao":
                self.txt_descricao.error_text = str(ex)
            show_snack(self.page_ref, str(ex), is_error=True)
            self.btn_submit.disabled = False
            return
        except (PermissionDenied, BackendError) as ex:
            show_snack(self.page_ref, f"Erro ao registrar: {ex}", is_error=True)
            self.btn_submit.disabled = False
            return
        finally:
            self.loading_indicator.visible = False
            self.update()

        detalhe = f"{len(resultado.fotos_enviadas)} foto(s) enviada(s)."
        if resultado.fotos_falhas:
            detalhe += f" {resultado.fotos_falhas} foto(s) não puderam ser enviadas."
        self.show_message(
            ft.Icons.CHECK_CIRCLE, ft.Colors.GREEN_700, "Atendimento registrado!", detalhe,
            [
                ft.ElevatedButton("Novo atendimento (mesmo participante)", icon=ft.Icons.ADD, on_click=self.reset),
                ft.TextButton("Ir para o dashboard", icon=ft.Icons.DASHBOARD, on_click=lambda e: self.page_ref.go("/dashboard")),
            ],
        )

    def reset(self, e=None):
        """Limpa o formulário mantendo participante e posição"""
        self.txt_descricao.value = ""
        self.txt_observacoes.value = ""
        self.rg_gravidade.value = Gravidade.LEVE.value
        self.inbox.clear()
        self.photo_row.controls = []
        self.btn_submit.disabled = self.posicao is None
        self.show_form()

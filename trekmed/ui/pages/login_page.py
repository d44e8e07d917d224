import flet as ft
from trekmed.services.auth_service import AuthService

def _header(evento_nome: str = None) -> ft.Column:
    # Evento escolhido na página pública aparece como contexto
    return ft.Column(
        [
            ft.Icon(ft.Icons.MEDICAL_SERVICES, size=72, color=ft.Colors.RED_700),
            ft.Text("TrekMed", size=28, weight="bold", color=ft.Colors.BLUE_GREY_900),
            ft.Text(
                f"Evento: {evento_nome}" if evento_nome else "Acesso da equipe de saúde",
                size=14,
                color=ft.Colors.GREY_600,
            ),
        ],
        horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        spacing=4,
    )

class LoginPage(ft.Container):
    def __init__(self, page: ft.Page, auth: AuthService, on_login_success, evento_nome: str = None):
        super().__init__()
        self.page_ref = page
        self.auth = auth
        self.on_login_success = on_login_success

        self.padding = 24
        self.alignment = ft.alignment.center

        self.txt_email = ft.TextField(
            label="E-mail",
            prefix_icon=ft.Icons.EMAIL,
            keyboard_type=ft.KeyboardType.EMAIL,
            autofocus=True,
            on_submit=lambda e: self.txt_senha.focus(),
        )
        self.txt_senha = ft.TextField(
            label="Senha",
            prefix_icon=ft.Icons.LOCK,
            password=True,
            can_reveal_password=True,
            on_submit=self.entrar,
        )
        self.lbl_erro = ft.Text("", color=ft.Colors.RED_600, size=13, visible=False)
        self.progress = ft.ProgressBar(visible=False, color=ft.Colors.RED_700)

        self.btn_entrar = ft.FilledButton(
            "Entrar",
            icon=ft.Icons.LOGIN,
            style=ft.ButtonStyle(bgcolor=ft.Colors.RED_700, shape=ft.RoundedRectangleBorder(radius=8)),
            width=float("inf"),
            on_click=self.entrar,
        )

        self.content = ft.Column(
            [
                _header(evento_nome),
                ft.Card(
                    elevation=3,
                    content=ft.Container(
                        padding=20,
                        content=ft.Column(
                            [self.txt_email, self.txt_senha, self.lbl_erro, self.progress, self.btn_entrar],
                            spacing=14,
                        ),
                    ),
                ),
                ft.TextButton("Voltar para eventos", icon=ft.Icons.ARROW_BACK, on_click=lambda e: page.go("/")),
            ],
            width=380,
            spacing=20,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        )

    def set_busy(self, busy: bool):
        self.btn_entrar.disabled = busy
        self.progress.visible = busy
        self.update()

    def show_error(self, mensagem: str):
        self.lbl_erro.value = mensagem
        self.lbl_erro.visible = True
        self.update()

    def entrar(self, e):
        email = (self.txt_email.value or "").strip()
        senha = self.txt_senha.value or ""
        if not email or not senha:
            self.show_error("Preencha e-mail e senha.")
            return

        self.lbl_erro.visible = False
        self.set_busy(True)
        erro = self.auth.sign_in(email, senha)
        self.set_busy(False)

        if erro:
            self.show_error(erro)
            return
        self.on_login_success()

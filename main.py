import os
import logging
import secrets
from urllib.parse import parse_qs, urlparse

import flet as ft
from trekmed.data.kv_store import KVStore
from trekmed.models.evento import Evento
from trekmed.models.permissao import GERENCIAR_EQUIPE
from trekmed.services.admin_service import AdminService
from trekmed.services.api_client import BackendError
from trekmed.services.photo_inbox import UPLOAD_DIR
from trekmed.ui.context import AppContext
from trekmed.ui.pages.atendimento_page import AtendimentoPage
from trekmed.ui.pages.dashboard_page import DashboardPage
from trekmed.ui.pages.equipe_page import EquipePage
from trekmed.ui.pages.eventos_page import EventosPage
from trekmed.ui.pages.landing_page import LandingPage
from trekmed.ui.pages.login_page import LoginPage
from trekmed.ui.pages.participantes_page import ParticipantesPage
from trekmed.ui.pages.super_admin_page import SuperAdminEventos, SuperAdminOverview, SuperAdminUsuarios

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("TrekMed")

# Rotas que exigem evento selecionado
EVENT_ROUTES = {"/dashboard", "/participantes", "/equipe"}

def main(page: ft.Page):
    page.title = "TrekMed - Suporte Médico"
    page.theme_mode = ft.ThemeMode.LIGHT

    try:
        ctx = AppContext(kv_store=KVStore())
        if ctx.auth.restore_session():
            ctx.eventos.load_eventos()
    except BackendError as e:
        # Servidor fora do ar: segue sem sessão; as páginas mostram o erro
        logger.warning("Sessão não restaurada: %s", e.message)
    except Exception as e:
        page.add(ft.Text(f"Erro de Setup: {e}", color="red"))
        return

    admin_service = AdminService(ctx.api, ctx.auth)

    def after_login():
        """Retoma a rota pedida antes do login ou segue para o evento"""
        if ctx.pending_route:
            route, ctx.pending_route = ctx.pending_route, None
            page.go(route)
            return
        try:
            ctx.eventos.load_eventos()
        except BackendError as e:
            logger.warning("Falha ao carregar eventos: %s", e.message)
        page.go(ctx.eventos.landing_route())

    def on_public_event_chosen(evento: Evento):
        if not ctx.auth.get_current_user():
            page.go("/login")
            return
        ctx.eventos.clear_evento()
        try:
            ctx.eventos.load_eventos()
        except BackendError as e:
            logger.warning("Falha ao carregar eventos: %s", e.message)
        page.go(ctx.eventos.landing_route())

    def trocar_evento(e):
        ctx.eventos.clear_evento()
        ctx.eventos.clear_public_event()
        page.go("/")

    def logout_click(e):
        ctx.replace_feed(None)
        ctx.auth.sign_out()
        page.go("/")

    def app_bar(active: str) -> ft.AppBar:
        evento = ctx.eventos.selected_evento
        usuario = ctx.auth.get_current_user()

        def nav(label, route, icon):
            return ft.TextButton(
                label,
                icon=icon,
                style=ft.ButtonStyle(color=ft.Colors.AMBER_200 if active == route else ft.Colors.WHITE),
                on_click=lambda e: page.go(route),
            )

        actions = []
        if evento:
            actions.append(nav("Dashboard", "/dashboard", ft.Icons.DASHBOARD))
            actions.append(nav("Participantes", "/participantes", ft.Icons.GROUPS))
            if ctx.eventos.has_permission(GERENCIAR_EQUIPE) or ctx.eventos.is_event_admin:
                actions.append(nav("Equipe", "/equipe", ft.Icons.BADGE))
        if ctx.auth.is_super_admin:
            actions.append(nav("Super Admin", "/super-admin", ft.Icons.SHIELD))
        if evento:
            actions.append(ft.IconButton(ft.Icons.SWAP_HORIZ, tooltip="Trocar evento", icon_color=ft.Colors.WHITE, on_click=trocar_evento))
        actions.append(ft.IconButton(ft.Icons.LOGOUT, tooltip="Sair", icon_color=ft.Colors.WHITE, on_click=logout_click))

        title = ft.Row([
            ft.Icon(ft.Icons.TERRAIN),
            ft.Text("TrekMed"),
            ft.Text(evento.nome, size=12, color=ft.Colors.GREEN_100) if evento else ft.Container(),
        ])
        return ft.AppBar(
            title=title,
            bgcolor=ft.Colors.BLUE_GREY_900,
            color=ft.Colors.WHITE,
            actions=actions,
            tooltip=usuario.nome if usuario else None,
        )

    def route_change(route):
        parsed = urlparse(page.route)
        path = parsed.path or "/"
        query = parse_qs(parsed.query)
        page.views.clear()

        if path == "/":
            page.views.append(ft.View("/", [LandingPage(page, ctx.eventos, on_public_event_chosen)], scroll=ft.ScrollMode.AUTO))

        elif path == "/login":
            if ctx.auth.get_current_user():
                after_login()
                return
            public_id = ctx.eventos.public_selected_event_id
            evento_nome = None
            if public_id:
                try:
                    evento_nome = next((e.nome for e in ctx.eventos.public_eventos() if e.id == public_id), None)
                except BackendError:
                    evento_nome = None
            page.views.append(
                ft.View(
                    "/login",
                    [LoginPage(page, ctx.auth, on_login_success=after_login, evento_nome=evento_nome)],
                    vertical_alignment=ft.MainAxisAlignment.CENTER,
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER
                )
            )

        elif path == "/a":
            # Página aberta pela tag NFC; trata o login internamente
            tag = (query.get("t") or [None])[0]
            page.views.append(ft.View(page.route, [AtendimentoPage(page, ctx, tag)], scroll=ft.ScrollMode.AUTO))

        else:
            if not ctx.auth.get_current_user():
                ctx.pending_route = page.route
                page.go("/login")
                return

            if path == "/eventos":
                page.views.append(ft.View(
                    "/eventos",
                    [app_bar(path), EventosPage(page, ctx.eventos, on_selected=lambda ev: page.go("/dashboard"))],
                ))

            elif path in EVENT_ROUTES:
                if not ctx.eventos.selected_evento:
                    page.go("/eventos")
                    return
                if path == "/dashboard":
                    content = DashboardPage(page, ctx)
                elif path == "/participantes":
                    content = ParticipantesPage(page, ctx)
                else:
                    content = EquipePage(page, ctx)
                page.views.append(ft.View(path, [app_bar(path), content]))

            elif path.startswith("/super-admin"):
                if not ctx.auth.is_super_admin:
                    page.go(ctx.eventos.landing_route())
                    return
                pages = {
                    "/super-admin": SuperAdminOverview,
                    "/super-admin/eventos": SuperAdminEventos,
                    "/super-admin/usuarios": SuperAdminUsuarios,
                }
                view_cls = pages.get(path, SuperAdminOverview)
                page.views.append(ft.View(path, [app_bar("/super-admin"), view_cls(page, admin_service)]))

            else:
                page.go(ctx.eventos.landing_route())
                return

        page.update()

    def view_pop(view):
        page.views.pop()
        top_view = page.views[-1]
        page.go(top_view.route)

    page.on_route_change = route_change
    page.on_view_pop = view_pop
    page.go(page.route or "/")

if __name__ == "__main__":
    # Uploads do modo web exigem chave para assinar as URLs
    os.environ.setdefault("FLET_SECRET_KEY", secrets.token_hex(16))
    ft.app(target=main, upload_dir=UPLOAD_DIR)

import logging
import threading

import flet as ft

from trekmed.models.atendimento import AtendimentoDetalhado, Gravidade, StatusAtendimento
from trekmed.models.permissao import EDITAR_ATENDIMENTO
from trekmed.services.api_client import BackendError
from trekmed.services.dashboard_service import DashboardState
from trekmed.services.realtime import ChangeFeed
from trekmed.ui.context import AppContext
from trekmed.ui.feedback import badge, show_snack
from trekmed.ui.theme import GRAVIDADE_CONFIG, STATUS_CONFIG, gravidade_color, gravidade_label, status_label
from trekmed.ui.widgets.atendimento_map import AtendimentoMap
from trekmed.ui.widgets.participante_profile import ParticipanteProfile

logger = logging.getLogger("DashboardPage")

def _stat_card(icon, label: str, value_text: ft.Text, color: str) -> ft.Container:
    return ft.Container(
        col={"xs": 6, "md": 3},
        padding=15,
        border_radius=10,
        bgcolor=ft.Colors.WHITE,
        border=ft.border.all(1, ft.Colors.GREY_200),
        content=ft.Row([
            ft.Container(
                content=ft.Icon(icon, color=color),
                bgcolor=ft.Colors.with_opacity(0.15, color),
                padding=10,
                border_radius=8,
            ),
            ft.Column([value_text, ft.Text(label, size=12, color=ft.Colors.GREY_600)], spacing=0),
        ]),
    )

class DashboardPage(ft.Column):
    def __init__(self, page: ft.Page, ctx: AppContext):
        super().__init__()
        self.page_ref = page
        self.ctx = ctx
        self.state = DashboardState(ctx.api, ctx.eventos.selected_evento.id)
        self.can_edit = ctx.eventos.has_permission(EDITAR_ATENDIMENTO)
        self.expand = True
        self.scroll = ft.ScrollMode.AUTO

        self._stop_ticker = threading.Event()
        self.dlg_details = None

        # --- Cartões de resumo ---
        self.txt_total = ft.Text("0", size=22, weight="bold")
        self.txt_participantes = ft.Text("0", size=22, weight="bold")
        self.txt_equipe = ft.Text("0", size=22, weight="bold")
        self.txt_graves = ft.Text("0", size=22, weight="bold")

        # --- Filtros por gravidade ---
        self.filter_row = ft.Row(wrap=True, spacing=8)

        self.map_view = AtendimentoMap(on_marker_click=self.open_details)
        self.toast_column = ft.Column(spacing=6)
        self.list_view = ft.Column(spacing=8)
        self.lbl_list = ft.Text("Lista de Atendimentos", size=16, weight="bold")

        self.controls = [
            self.toast_column,
            ft.ResponsiveRow([
                _stat_card(ft.Icons.MEDICAL_SERVICES, "Total Atendimentos", self.txt_total, "#059669"),
                _stat_card(ft.Icons.GROUPS, "Participantes", self.txt_participantes, "#0ea5e9"),
                _stat_card(ft.Icons.BADGE, "Equipe", self.txt_equipe, "#f59e0b"),
                _stat_card(ft.Icons.WARNING, "Graves / Críticos", self.txt_graves, "#ef4444"),
            ]),
            self.filter_row,
            self.map_view,
            ft.Divider(),
            self.lbl_list,
            self.list_view,
        ]

    def did_mount(self):
        try:
            self.state.load()
            self.state.load_stats()
        except BackendError as e:
            show_snack(self.page_ref, f"Erro ao carregar atendimentos: {e.message}", is_error=True)
        self.render()

        feed = ChangeFeed(
            self.ctx.api,
            ["atendimentos", "atendimento_fotos"],
            self.on_change,
            evento_id=self.state.evento_id,
        )
        try:
            feed.prime()
        except BackendError as e:
            logger.warning("Feed não iniciado: %s", e.message)
        self.ctx.replace_feed(feed)
        threading.Thread(target=self._tick, daemon=True).start()

    def will_unmount(self):
        self._stop_ticker.set()
        self.ctx.replace_feed(None)

    # --- Tempo real ---
    def on_change(self, change):
        if self.state.apply_change(change):
            self.render()

    def _tick(self):
        while not self._stop_ticker.wait(1.0):
            self.state.prune()
            self.map_view.toggle_pulse()
            self.render_toasts()
            try:
                self.update()
            except (AssertionError, RuntimeError):
                # Controle já saiu da página
                break

    # --- Renderização ---
    def render(self):
        contagem = self.state.contagem_por_gravidade()
        self.txt_total.value = str(len(self.state.atendimentos))
        self.txt_participantes.value = str(self.state.total_participantes)
        self.txt_equipe.value = str(self.state.total_equipe)
        self.txt_graves.value = str(contagem["critico"] + contagem["grave"])

        self.render_filters(contagem)
        filtrados = self.state.filtrados
        self.map_view.render(filtrados, self.state.is_new)
        self.render_list(filtrados)
        self.render_toasts()
        self.update()

    def render_filters(self, contagem):
        atual = self.state.filtro_gravidade
        chips = [ft.Chip(
            label=ft.Text(f"Todos ({len(self.state.atendimentos)})"),
            selected=atual is None,
            on_select=lambda _: self.set_filtro(None),
        )]
        for g in Gravidade:
            config = GRAVIDADE_CONFIG[g.value]
            chips.append(ft.Chip(
                label=ft.Text(f"{config['icon']} {config['label']} ({contagem[g.value]})"),
                selected=atual == g.value,
                selected_color=config["bg_color"],
                on_select=lambda _, v=g.value: self.set_filtro(v),
            ))
        self.filter_row.controls = chips

    def render_list(self, atendimentos):
        self.lbl_list.value = f"Lista de Atendimentos ({len(atendimentos)})"
        self.list_view.controls.clear()
        if not atendimentos:
            self.list_view.controls.append(ft.Text("Nenhum atendimento registrado.", italic=True, color=ft.Colors.GREY_500))
            return

        for at in atendimentos:
            config = GRAVIDADE_CONFIG.get(at.gravidade, {})
            status = STATUS_CONFIG.get(at.atendimento.status, {"color": ft.Colors.GREY})
            destaque = self.state.is_new(at.id)
            self.list_view.controls.append(
                ft.Container(
                    padding=12,
                    border_radius=8,
                    bgcolor=ft.Colors.AMBER_50 if destaque else ft.Colors.WHITE,
                    border=ft.border.all(2 if destaque else 1, gravidade_color(at.gravidade) if destaque else ft.Colors.GREY_200),
                    animate=ft.Animation(500, ft.AnimationCurve.EASE_OUT),
                    on_click=lambda _, a=at: self.open_details(a),
                    content=ft.Row([
                        ft.Container(width=6, height=48, bgcolor=gravidade_color(at.gravidade), border_radius=3),
                        ft.Column([
                            ft.Text(at.participante.nome if at.participante else "Participante", weight="bold"),
                            ft.Text(at.atendimento.descricao, size=12, color=ft.Colors.GREY_700, max_lines=2),
                            ft.Text(
                                f"{at.atendimento.created_at:%d/%m %H:%M} • {at.medico.nome if at.medico else '-'}"
                                + (f" • {len(at.fotos)} foto(s)" if at.fotos else ""),
                                size=11, color=ft.Colors.GREY_500,
                            ),
                        ], spacing=2, expand=True),
                        ft.Column([
                            badge(config.get("label", at.gravidade), config.get("color", ft.Colors.GREY), config.get("bg_color")),
                            badge(status_label(at.atendimento.status), status["color"]),
                        ], spacing=4, horizontal_alignment=ft.CrossAxisAlignment.END),
                    ]),
                )
            )

    def render_toasts(self):
        self.toast_column.controls = [
            ft.Container(
                padding=10,
                border_radius=8,
                bgcolor=ft.Colors.BLUE_GREY_900,
                content=ft.Row([
                    ft.Icon(ft.Icons.NOTIFICATIONS_ACTIVE, color=gravidade_color(t.gravidade)),
                    ft.Text(t.mensagem, color=ft.Colors.WHITE, expand=True),
                    badge(gravidade_label(t.gravidade), gravidade_color(t.gravidade)),
                ]),
            )
            for t in self.state.toasts
        ]

    def set_filtro(self, gravidade):
        self.state.set_filtro(gravidade)
        self.render()

    # --- Detalhes ---
    def open_details(self, at: AtendimentoDetalhado):
        conteudo = []
        if at.participante:
            conteudo.append(ParticipanteProfile(at.participante))
        conteudo.extend([
            ft.Divider(),
            ft.Row([
                badge(gravidade_label(at.gravidade), gravidade_color(at.gravidade)),
                badge(status_label(at.atendimento.status), STATUS_CONFIG.get(at.atendimento.status, {}).get("color", ft.Colors.GREY)),
            ]),
            ft.Text("Descrição", weight="bold"),
            ft.Text(at.atendimento.descricao),
        ])
        if at.atendimento.observacoes:
            conteudo.extend([ft.Text("Observações", weight="bold"), ft.Text(at.atendimento.observacoes)])
        conteudo.append(ft.Text(
            f"📍 {at.atendimento.latitude:.6f}, {at.atendimento.longitude:.6f}"
            + (f" (±{at.atendimento.precisao_gps:.0f}m)" if at.atendimento.precisao_gps else ""),
            size=12, color=ft.Colors.GREY_600,
        ))
        if at.medico:
            crm = f" • CRM {at.medico.crm}" if at.medico.crm else ""
            conteudo.append(ft.Text(f"Atendido por {at.medico.nome}{crm}", size=12, color=ft.Colors.GREY_600))
        if at.fotos:
            conteudo.append(ft.Row(
                [ft.Image(src=f.foto_url, width=120, height=120, fit=ft.ImageFit.COVER, border_radius=8) for f in at.fotos],
                wrap=True,
            ))

        actions = []
        if self.can_edit:
            for status in StatusAtendimento:
                if status.value != at.atendimento.status:
                    actions.append(ft.TextButton(
                        status_label(status.value),
                        on_click=lambda _, s=status.value, a=at: self.change_status(a, s),
                    ))
        actions.append(ft.TextButton("Fechar", on_click=lambda e: self.page_ref.close(self.dlg_details)))

        self.dlg_details = ft.AlertDialog(
            title=ft.Text("Detalhes do Atendimento"),
            content=ft.Container(width=520, content=ft.Column(conteudo, scroll=ft.ScrollMode.AUTO, height=500)),
            actions=actions,
        )
        self.page_ref.open(self.dlg_details)

    def change_status(self, at: AtendimentoDetalhado, status: str):
        try:
            self.state.atualizar_status(at.id, status)
        except BackendError as e:
            show_snack(self.page_ref, f"Erro ao atualizar: {e.message}", is_error=True)
            return
        self.page_ref.close(self.dlg_details)
        show_snack(self.page_ref, f"Atendimento marcado como {status_label(status)}")

from typing import Callable, List, Optional

import flet as ft
import flet.map as ftm

from trekmed.models.atendimento import AtendimentoDetalhado
from trekmed.ui.theme import DEFAULT_MAP_ZOOM, map_center, marker_style

TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"

def build_marker(at: AtendimentoDetalhado, is_new: bool, on_click: Optional[Callable] = None) -> ftm.Marker:
    indicativo = at.participante.indicativo_saude if at.participante else None
    style = marker_style(at.gravidade, indicativo, is_new)

    shadow = [ft.BoxShadow(spread_radius=3, color=style.ring_color)] if style.ring_color else []
    shadow.append(ft.BoxShadow(blur_radius=8, color=ft.Colors.with_opacity(0.5, ft.Colors.BLACK)))

    dot = ft.Container(
        width=style.size,
        height=style.size,
        bgcolor=style.color,
        border=ft.border.all(3, ft.Colors.WHITE),
        border_radius=style.size,
        shadow=shadow,
    )
    layers = []
    if style.pulse:
        layers.append(ft.Container(
            width=style.box,
            height=style.box,
            border_radius=style.box,
            bgcolor=ft.Colors.with_opacity(0.3, style.color),
            animate_opacity=ft.Animation(900, ft.AnimationCurve.EASE_IN_OUT),
            data="pulse",
        ))
    layers.append(ft.Container(content=dot, width=style.box, height=style.box, alignment=ft.alignment.center))

    nome = at.participante.nome if at.participante else "Participante"
    return ftm.Marker(
        coordinates=ftm.MapLatitudeLongitude(at.atendimento.latitude, at.atendimento.longitude),
        width=style.box,
        height=style.box,
        content=ft.Container(
            content=ft.Stack(layers),
            tooltip=nome,
            on_click=(lambda _, a=at: on_click(a)) if on_click else None,
        ),
    )

class AtendimentoMap(ft.Container):
    def __init__(self, on_marker_click: Optional[Callable] = None, height: int = 420):
        super().__init__()
        self.on_marker_click = on_marker_click
        self.height = height
        self.border_radius = 10
        self.clip_behavior = ft.ClipBehavior.HARD_EDGE
        self.pulse_on = True

        self.marker_layer = ftm.MarkerLayer(markers=[])
        self.map_control = None
        # Atendimento em que o mapa foi centralizado por último
        self.centered_on: Optional[str] = None
        self.content = ft.Text("Carregando mapa...", italic=True, color=ft.Colors.GREY_500)

    def render(self, atendimentos: List[AtendimentoDetalhado], is_new: Callable[[str], bool]):
        self.marker_layer.markers = [build_marker(a, is_new(a.id), self.on_marker_click) for a in atendimentos]
        lat, lng = map_center(atendimentos)
        mais_recente = atendimentos[0].id if atendimentos else None

        if self.map_control is not None:
            # Chegou atendimento novo: leva o mapa até ele
            if mais_recente and mais_recente != self.centered_on and is_new(mais_recente):
                self.map_control.center_on(ftm.MapLatitudeLongitude(lat, lng), zoom=None)
                self.centered_on = mais_recente
            return

        self.centered_on = mais_recente
        self.map_control = ftm.Map(
            expand=True,
            initial_center=ftm.MapLatitudeLongitude(lat, lng),
            initial_zoom=DEFAULT_MAP_ZOOM,
            interaction_configuration=ftm.MapInteractionConfiguration(flags=ftm.MapInteractiveFlag.ALL),
            layers=[ftm.TileLayer(url_template=TILE_URL), self.marker_layer],
        )
        self.content = self.map_control

    def toggle_pulse(self):
        """Alterna a opacidade dos halos para simular o pulso"""
        self.pulse_on = not self.pulse_on
        for marker in self.marker_layer.markers:
            for layer in marker.content.content.controls:
                if layer.data == "pulse":
                    layer.opacity = 1 if self.pulse_on else 0.2

import flet as ft

from trekmed.models.participante import Participante
from trekmed.services.health import (
    IMC_SEGMENTS, NEUTRAL_COLOR, calcular_imc, cor_imc, escala_indicativo, segmento_imc,
)

DARK_BG = "#0f172a"

def _vital(label: str, value: str, color: str = "#f8fafc") -> ft.Column:
    return ft.Column([
        ft.Text(label.upper(), size=10, color="#94a3b8"),
        ft.Text(value, size=16, weight="bold", color=color),
    ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=2, expand=True)

def _scale_bar(segments, height=26) -> ft.Column:
    """Barra segmentada com um marcador sobre o segmento ativo"""
    pointers = ft.Row(spacing=0, height=12)
    bar = ft.Row(spacing=0, height=height)
    for label, color, active in segments:
        pointers.controls.append(
            ft.Container(
                expand=True,
                alignment=ft.alignment.center,
                content=ft.Icon(ft.Icons.ARROW_DROP_DOWN, size=16, color=ft.Colors.WHITE) if active else None,
            )
        )
        bar.controls.append(
            ft.Container(
                expand=True,
                bgcolor=color,
                opacity=1 if active else 0.8,
                alignment=ft.alignment.center,
                content=ft.Text(label, size=12, weight="bold", color=ft.Colors.WHITE),
            )
        )
    return ft.Column([pointers, ft.Container(content=bar, border_radius=4, clip_behavior=ft.ClipBehavior.HARD_EDGE)], spacing=0)

def _info(label: str, value: str) -> ft.Column:
    return ft.Column([
        ft.Text(label.upper(), size=10, color=ft.Colors.GREY_500),
        ft.Text(value, size=13, weight="bold"),
    ], spacing=1, col={"xs": 6})

class ParticipanteProfile(ft.Column):
    """Ficha clínica do participante exibida no registro de atendimento e no detalhe do dashboard."""

    def __init__(self, participante: Participante):
        super().__init__()
        self.participante = participante
        self.spacing = 0
        self.controls = self.build_sections()

    def build_sections(self):
        p = self.participante
        sections = [self._hero(p)]

        # Alertas têm prioridade visual
        alertas = []
        if p.alergias:
            alertas.append(ft.Row([
                ft.Icon(ft.Icons.GPP_MAYBE, color="#ef4444", size=18),
                ft.Column([
                    ft.Text("ALERGIA GRAVE / RESTRIÇÃO", size=10, weight="bold", color="#ef4444"),
                    ft.Text(p.alergias, color="#ef4444"),
                ], spacing=2, expand=True),
            ], vertical_alignment=ft.CrossAxisAlignment.START))
        if p.observacao_especial:
            alertas.append(ft.Row([
                ft.Icon(ft.Icons.WARNING_AMBER, color="#f97316", size=18),
                ft.Column([
                    ft.Text("OBSERVAÇÃO ESPECIAL", size=10, weight="bold", color="#f97316"),
                    ft.Text(p.observacao_especial, color="#f97316"),
                ], spacing=2, expand=True),
            ], vertical_alignment=ft.CrossAxisAlignment.START))
        if alertas:
            sections.append(ft.Container(content=ft.Column(alertas, spacing=8), padding=12, bgcolor="#1aef4444"))

        sections.append(self._vitals(p))

        meta = [
            _info(label, valor) for label, valor in [
                ("Biotipo", p.biotipo),
                ("Ativ. física", p.atividade_fisica_semanal),
                ("Plano de saúde", p.plano_saude),
                ("Equipe/Família", p.equipe_familia),
            ] if valor
        ]
        if meta:
            sections.append(ft.Container(content=ft.ResponsiveRow(meta), padding=15))

        if p.indicativo_saude:
            escala = [(str(valor), cor, ativo) for valor, cor, ativo in escala_indicativo(p.indicativo_saude)]
            sections.append(ft.Container(
                padding=15,
                content=ft.Column([
                    ft.Text("INDICATIVO DE SAÚDE", size=11, weight="bold"),
                    _scale_bar(escala, height=28),
                ], spacing=4),
            ))

        notas = [t for t in (p.condicoes_medicas, p.medicamentos, p.outras_informacoes_medicas, p.cirurgias) if t]
        if notas:
            sections.append(ft.Container(
                padding=15,
                content=ft.Column(
                    [ft.Text("OBSERVAÇÕES DE SAÚDE", size=11, weight="bold")]
                    + [ft.Text(n, color=ft.Colors.GREY_700) for n in notas],
                    spacing=4,
                ),
            ))

        if p.contato_emergencia_nome or p.telefone_emergencia:
            sections.append(ft.Container(
                padding=15,
                content=ft.Row([
                    ft.Icon(ft.Icons.PHONE, color=ft.Colors.GREEN_700),
                    ft.Column([
                        ft.Text("CONTATO DE EMERGÊNCIA", size=10, color=ft.Colors.GREY_500),
                        ft.Text(f"{p.contato_emergencia_nome or ''} {p.telefone_emergencia or ''}".strip(), weight="bold"),
                    ], spacing=1),
                ]),
            ))
        return sections

    def _hero(self, p: Participante) -> ft.Container:
        detalhes = [f"Tag {p.nfc_tag_id}"]
        if p.idade:
            detalhes.append(f"{p.idade} anos")
        if p.cidade_estado:
            detalhes.append(p.cidade_estado)

        avatar = (
            ft.CircleAvatar(foreground_image_src=p.foto_url, radius=32)
            if p.foto_url else
            ft.CircleAvatar(content=ft.Text(p.nome[:1].upper(), size=26), radius=32)
        )
        return ft.Container(
            padding=20,
            content=ft.Row([
                avatar,
                ft.Column([
                    ft.Text(p.nome, size=20, weight="bold"),
                    ft.Text(" • ".join(detalhes), size=12, color=ft.Colors.GREY_600),
                ], spacing=4, expand=True),
            ]),
        )

    def _vitals(self, p: Participante) -> ft.Container:
        imc = calcular_imc(p.peso, p.altura)
        strip = ft.Row([
            _vital("Sangue", p.tipo_sanguineo or "--", "#ef4444" if p.tipo_sanguineo else "#64748b"),
            _vital("Peso", f"{p.peso:g}kg" if p.peso else "--"),
            _vital("Altura", f"{p.altura:g}m" if p.altura else "--"),
            _vital("IMC", f"{imc:.1f}" if imc else "--", cor_imc(imc) if imc else NEUTRAL_COLOR),
        ])
        controls = [strip]
        if imc:
            ativo = segmento_imc(imc)
            controls.append(_scale_bar([(label, cor, i == ativo) for i, (label, cor, _) in enumerate(IMC_SEGMENTS)]))
        return ft.Container(content=ft.Column(controls, spacing=10), bgcolor=DARK_BG, padding=ft.padding.symmetric(horizontal=20, vertical=15))

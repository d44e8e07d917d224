"""Cores, rótulos e tamanhos usados pela interface (sem dependência do Flet)."""
from dataclasses import dataclass
from typing import Optional

from trekmed.services.health import NEUTRAL_COLOR, cor_indicativo

GRAVIDADE_CONFIG = {
    "leve": {"label": "Leve", "color": "#22c55e", "bg_color": "#2622c55e", "icon": "🟢"},
    "moderado": {"label": "Moderado", "color": "#f59e0b", "bg_color": "#26f59e0b", "icon": "🟡"},
    "grave": {"label": "Grave", "color": "#f97316", "bg_color": "#26f97316", "icon": "🟠"},
    "critico": {"label": "Crítico", "color": "#ef4444", "bg_color": "#26ef4444", "icon": "🔴"},
}

STATUS_CONFIG = {
    "em_andamento": {"label": "Em andamento", "color": "#3b82f6"},
    "finalizado": {"label": "Finalizado", "color": "#22c55e"},
    "encaminhado": {"label": "Encaminhado", "color": "#a855f7"},
}

EVENTO_STATUS_CONFIG = {
    "draft": {"label": "Rascunho", "color": "#94a3b8"},
    "ativo": {"label": "Ativo", "color": "#22c55e"},
    "encerrado": {"label": "Encerrado", "color": "#f59e0b"},
    "arquivado": {"label": "Arquivado", "color": "#64748b"},
}

# Diâmetro do marcador no mapa
MARKER_SIZE = {
    "critico": 36,
    "grave": 32,
    "moderado": 28,
    "leve": 24,
}

# Ouro Preto, MG
DEFAULT_MAP_CENTER = (-20.3155, -43.8695)
DEFAULT_MAP_ZOOM = 13

@dataclass
class MarkerStyle:
    size: int
    color: str
    ring_color: Optional[str]
    pulse: bool

    @property
    def box(self) -> int:
        """Área total reservada ao marcador (ponto + halo)"""
        return self.size + 16

def gravidade_label(gravidade: str) -> str:
    config = GRAVIDADE_CONFIG.get(gravidade)
    return config["label"] if config else gravidade

def gravidade_color(gravidade: str) -> str:
    config = GRAVIDADE_CONFIG.get(gravidade)
    return config["color"] if config else NEUTRAL_COLOR

def status_label(status: str) -> str:
    config = STATUS_CONFIG.get(status)
    return config["label"] if config else status

def marker_style(gravidade: str, indicativo_saude: Optional[int] = None, is_new: bool = False) -> MarkerStyle:
    """Tamanho pela gravidade, anel pelo indicativo de saúde, pulso para grave/crítico ou recém-chegado"""
    return MarkerStyle(
        size=MARKER_SIZE.get(gravidade, 28),
        color=gravidade_color(gravidade),
        ring_color=cor_indicativo(indicativo_saude),
        pulse=gravidade in ("critico", "grave") or is_new,
    )

def map_center(atendimentos) -> tuple:
    """Centraliza no atendimento mais recente (lista já ordenada do mais novo)"""
    if atendimentos:
        primeiro = atendimentos[0].atendimento
        return (primeiro.latitude, primeiro.longitude)
    return DEFAULT_MAP_CENTER

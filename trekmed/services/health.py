"""Indicadores clínicos exibidos no perfil do participante e no mapa."""
from typing import List, Optional, Tuple

# (rótulo, cor, limite superior do IMC)
IMC_SEGMENTS: List[Tuple[str, str, float]] = [
    ("Ab", "#3b82f6", 18.49),
    ("Nm", "#22c55e", 24.99),
    ("Sp", "#eab308", 29.99),
    ("Ob1", "#f97316", 34.99),
    ("Ob2", "#ef4444", 39.99),
    ("Ob3", "#a855f7", float("inf")),
]

# 1 = crítico (vermelho) ... 5 = saudável (azul)
INDICATIVO_COLORS = {
    1: "#ef4444",
    2: "#f97316",
    3: "#eab308",
    4: "#22c55e",
    5: "#3b82f6",
}

NEUTRAL_COLOR = "#94a3b8"

def calcular_imc(peso: Optional[float], altura: Optional[float]) -> Optional[float]:
    """peso em kg, altura em metros"""
    if not peso or not altura:
        return None
    return peso / (altura * altura)

def segmento_imc(imc: float) -> int:
    return next(i for i, (_, _, limite) in enumerate(IMC_SEGMENTS) if imc <= limite)

def cor_imc(imc: Optional[float]) -> str:
    if imc is None:
        return NEUTRAL_COLOR
    if imc < 18.5:
        return "#3b82f6"
    if imc >= 30:
        return "#ef4444"
    if imc >= 25:
        return "#eab308"
    return "#22c55e"

def cor_indicativo(nivel: Optional[int]) -> Optional[str]:
    if not nivel:
        return None
    return INDICATIVO_COLORS.get(nivel, NEUTRAL_COLOR)

def escala_indicativo(nivel: Optional[int]) -> List[Tuple[int, str, bool]]:
    """Escala 1..5 com o nível atual marcado"""
    return [(valor, cor, valor == nivel) for valor, cor in INDICATIVO_COLORS.items()]

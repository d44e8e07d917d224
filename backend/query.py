"""
Tradução dos query params de /rest/{recurso} em cláusulas SQLAlchemy.

Sintaxe aceita (inspirada em PostgREST):
    col=valor            igualdade
    col=neq.valor        diferente
    col=in.(a,b,c)       pertence à lista
    col=ilike.*texto*    busca sem distinção de caixa ('*' vira '%')
    col=is.null          nulo (is.notnull para não nulo)
    order=col.desc,col2  ordenação (asc por padrão)
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Type

from sqlmodel import SQLModel

RESERVED_PARAMS = {"order", "limit", "offset", "count", "head"}

class QueryError(ValueError):
    pass

def _column(model: Type[SQLModel], name: str, hidden: Iterable[str] = ()):
    table = model.__table__
    if name not in table.columns or name in hidden:
        raise QueryError(f"Coluna '{name}' inválida para {table.name}.")
    return table.columns[name]

def coerce_value(column, raw: Any) -> Any:
    """Converte o texto da URL/JSON para o tipo Python da coluna."""
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw

    if python_type is bool:
        return raw.strip().lower() in ("true", "1", "t", "yes", "sim")
    if python_type is int:
        return int(raw)
    if python_type is float:
        return float(raw)
    if python_type is datetime:
        return datetime.fromisoformat(raw)
    if python_type is date:
        # Aceita "2026-05-01" ou ISO completo
        return datetime.fromisoformat(raw).date() if "T" in raw else date.fromisoformat(raw)
    return raw

def build_filters(model: Type[SQLModel], params: Dict[str, str], hidden: Iterable[str] = ()) -> List[Any]:
    clauses = []
    for name, raw in params.items():
        if name in RESERVED_PARAMS:
            continue
        column = _column(model, name, hidden)
        try:
            if raw.startswith("neq."):
                clauses.append(column != coerce_value(column, raw[4:]))
            elif raw.startswith("in.(") and raw.endswith(")"):
                items = [item for item in raw[4:-1].split(",") if item]
                clauses.append(column.in_([coerce_value(column, item) for item in items]))
            elif raw.startswith("ilike."):
                clauses.append(column.ilike(raw[6:].replace("*", "%")))
            elif raw == "is.null":
                clauses.append(column.is_(None))
            elif raw == "is.notnull":
                clauses.append(column.is_not(None))
            else:
                value = raw[3:] if raw.startswith("eq.") else raw
                clauses.append(column == coerce_value(column, value))
        except ValueError as e:
            raise QueryError(f"Valor inválido para '{name}': {e}") from e
    return clauses

def build_order(model: Type[SQLModel], order: str, hidden: Iterable[str] = ()) -> List[Any]:
    clauses = []
    for part in order.split(","):
        part = part.strip()
        if not part:
            continue
        name, _, direction = part.partition(".")
        column = _column(model, name, hidden)
        if direction not in ("", "asc", "desc"):
            raise QueryError(f"Direção '{direction}' inválida.")
        clauses.append(column.desc() if direction == "desc" else column.asc())
    return clauses

def parse_payload(model: Type[SQLModel], item: Dict[str, Any], hidden: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Mantém só os campos do modelo (sem id e campos ocultos) e converte
    datas ISO8601 para datetime/date.
    """
    table = model.__table__
    clean = {}
    for key, value in item.items():
        if key == "id" or key in hidden or key not in table.columns:
            continue
        column = table.columns[key]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            python_type = None
        if python_type in (datetime, date) and isinstance(value, str):
            value = coerce_value(column, value) if value else None
        clean[key] = value
    return clean

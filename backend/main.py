import logging
from fastapi import FastAPI, Depends, HTTPException, Request, Body, status
from fastapi.responses import FileResponse
from typing import Dict, Any, Optional, List
from sqlmodel import SQLModel, select, func, col
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from contextlib import asynccontextmanager
from datetime import datetime, timezone

# --- IMPORTAÇÃO DOS MODELOS ---
from trekmed.models.evento import Evento, EventoStatus, EventoUsuario
from trekmed.models.usuario import Usuario
from trekmed.models.permissao import GERENCIAR_EQUIPE, Permissao, EventoUsuarioPermissao
from trekmed.models.participante import Participante
from trekmed.models.atendimento import Atendimento, AtendimentoFoto
from trekmed.models.mudanca import MudancaTipo

# --- IMPORTAÇÕES DO BACKEND ---
from backend.database import init_db, get_session, async_session
from backend.security import (
    hash_password,
    verify_password,
    open_session,
    close_session,
    get_current_user,
    get_token,
    find_user_by_email,
)
from backend.query import QueryError, build_filters, build_order, parse_payload
from backend.changes import record_change, current_cursor, list_changes
from backend.access import (
    INSERT,
    UPDATE,
    DELETE,
    check_write,
    forbidden,
    has_permission,
    member_event_ids,
    read_scope,
)
from backend.storage import StorageError, save_object, resolve_object_path, public_url
from backend.seed import seed_permissoes, create_admin_if_empty

logger = logging.getLogger("backend")

# --- MAPEAMENTO DE ROTAS ---
# Conecta o "nome na URL" à "Classe do Modelo"
MODELS_MAP = {
    "eventos": Evento,
    "usuarios": Usuario,
    "eventos_usuarios": EventoUsuario,
    "permissoes": Permissao,
    "eventos_usuarios_permissoes": EventoUsuarioPermissao,
    "participantes": Participante,
    "atendimentos": Atendimento,
    "atendimento_fotos": AtendimentoFoto,
}

# Campos que nunca saem do servidor nem podem ser filtrados/escritos via /rest
HIDDEN_FIELDS = {"usuarios": {"password_hash"}}

class LoginRequest(SQLModel):
    email: str
    password: str

class SignupRequest(SQLModel):
    email: str
    password: str
    nome: str
    crm: Optional[str] = None
    especialidade: Optional[str] = None
    telefone: Optional[str] = None
    # Evento onde o novo membro será incluído (obrigatório fora do Super Admin)
    evento_id: Optional[str] = None

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    async with async_session() as session:
        await seed_permissoes(session)
        await create_admin_if_empty(session)
    yield

app = FastAPI(title="TrekMed - Servidor Central", lifespan=lifespan)

def serialize(resource_name: str, record: SQLModel) -> Dict[str, Any]:
    return record.model_dump(mode="json", exclude=HIDDEN_FIELDS.get(resource_name, set()))

def _model_or_404(resource_name: str):
    if resource_name not in MODELS_MAP:
        raise HTTPException(status_code=404, detail=f"Recurso '{resource_name}' desconhecido.")
    return MODELS_MAP[resource_name]

async def _commit_or_fail(session: AsyncSession, resource_name: str):
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning("Conflito em %s: %s", resource_name, e.orig)
        raise HTTPException(status_code=409, detail="Registro conflitante ou incompleto.")
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("ERRO DE BANCO (%s): %s", resource_name, e)
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/")
async def root():
    return {
        "status": "online",
        "resources": list(MODELS_MAP.keys()),
        "time": datetime.now(timezone.utc).isoformat(),
    }

# --- AUTENTICAÇÃO ---
@app.post("/auth/login")
async def login(body: LoginRequest, session: AsyncSession = Depends(get_session)):
    usuario = await find_user_by_email(session, body.email)
    if not usuario or not verify_password(body.password, usuario.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="E-mail ou senha inválidos.")
    if not usuario.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário desativado.")

    token = await open_session(session, usuario)
    return {"access_token": token, "token_type": "bearer", "usuario": serialize("usuarios", usuario)}

@app.post("/auth/logout")
async def logout(token: Optional[str] = Depends(get_token), session: AsyncSession = Depends(get_session)):
    if token:
        await close_session(session, token)
    return {"status": "ok"}

@app.get("/auth/me")
async def me(usuario: Usuario = Depends(get_current_user)):
    return serialize("usuarios", usuario)

@app.post("/auth/signup", status_code=201)
async def signup(
    body: SignupRequest,
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Cria a conta de um novo membro (chamado por quem gerencia a equipe)"""
    if not await has_permission(session, usuario, body.evento_id, GERENCIAR_EQUIPE):
        raise forbidden("Sem permissão para cadastrar membros neste evento.")
    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="E-mail inválido.")
    if len(body.password) < 6:
        raise HTTPException(status_code=400, detail="A senha deve ter pelo menos 6 caracteres.")
    if await find_user_by_email(session, email):
        raise HTTPException(status_code=409, detail="Já existe um usuário com este e-mail.")

    novo = Usuario(
        email=email,
        password_hash=hash_password(body.password),
        nome=body.nome,
        crm=body.crm or None,
        especialidade=body.especialidade or None,
        telefone=body.telefone or None,
    )
    session.add(novo)
    await record_change(session, "usuarios", MudancaTipo.INSERT, novo)
    await _commit_or_fail(session, "usuarios")
    await session.refresh(novo)
    logger.info("Usuário %s criado por %s", novo.email, usuario.email)
    return serialize("usuarios", novo)

# --- LISTAGEM PÚBLICA (antes do login) ---
@app.get("/public/eventos")
async def public_eventos(session: AsyncSession = Depends(get_session)):
    statement = (
        select(Evento)
        .where(Evento.status == EventoStatus.ATIVO.value)
        .order_by(col(Evento.created_at).desc())
    )
    eventos = (await session.exec(statement)).all()
    return {"data": [serialize("eventos", e) for e in eventos]}

# --- CRUD GENÉRICO ---
@app.get("/rest/{resource_name}")
async def select_rows(
    resource_name: str,
    request: Request,
    order: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    count: Optional[str] = None,
    head: bool = False,
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Consulta QUALQUER recurso definido em MODELS_MAP.
    Ex: GET /rest/participantes?evento_id=...&order=nome
    """
    ModelClass = _model_or_404(resource_name)
    hidden = HIDDEN_FIELDS.get(resource_name, set())

    try:
        filters = build_filters(ModelClass, dict(request.query_params), hidden)
        ordering = build_order(ModelClass, order, hidden) if order else []
    except QueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    filters.extend(await read_scope(session, usuario, resource_name))

    total = None
    if count == "exact":
        statement = select(func.count()).select_from(ModelClass).where(*filters)
        total = (await session.exec(statement)).one()

    data: List[Dict[str, Any]] = []
    if not head:
        statement = select(ModelClass).where(*filters).order_by(*ordering).offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        records = (await session.exec(statement)).all()
        data = [serialize(resource_name, r) for r in records]

    return {"data": data, "count": total}

@app.post("/rest/{resource_name}", status_code=201)
async def insert_row(
    resource_name: str,
    payload: Dict[str, Any] = Body(...),
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    ModelClass = _model_or_404(resource_name)

    try:
        data = parse_payload(ModelClass, payload, HIDDEN_FIELDS.get(resource_name, set()))
        if payload.get("id"):
            data["id"] = str(payload["id"])
        record = ModelClass.model_validate(data)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await check_write(session, usuario, resource_name, INSERT, [record.model_dump()])

    session.add(record)
    try:
        await record_change(session, resource_name, MudancaTipo.INSERT, record)
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="Registro conflitante ou incompleto.")
    await _commit_or_fail(session, resource_name)
    await session.refresh(record)
    return serialize(resource_name, record)

@app.patch("/rest/{resource_name}/{record_id}")
async def update_row(
    resource_name: str,
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    ModelClass = _model_or_404(resource_name)

    record = await session.get(ModelClass, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Registro não encontrado.")

    try:
        data = parse_payload(ModelClass, payload, HIDDEN_FIELDS.get(resource_name, set()))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # Estado atual e estado final precisam estar dentro do que o usuário pode alterar
    atual = record.model_dump()
    await check_write(session, usuario, resource_name, UPDATE, [atual, {**atual, **data}])

    # Atualiza campos existentes dinamicamente
    for key, value in data.items():
        setattr(record, key, value)
    record.touch()

    session.add(record)
    await record_change(session, resource_name, MudancaTipo.UPDATE, record)
    await _commit_or_fail(session, resource_name)
    await session.refresh(record)
    return serialize(resource_name, record)

@app.delete("/rest/{resource_name}/{record_id}")
async def delete_row(
    resource_name: str,
    record_id: str,
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    ModelClass = _model_or_404(resource_name)

    record = await session.get(ModelClass, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Registro não encontrado.")
    await check_write(session, usuario, resource_name, DELETE, [record.model_dump()])

    await record_change(session, resource_name, MudancaTipo.DELETE, record)
    await session.delete(record)
    await _commit_or_fail(session, resource_name)
    return {"deleted": record_id}

# --- ATENDIMENTOS COM JOINS ---
@app.get("/atendimentos/detalhados")
async def atendimentos_detalhados(
    evento_id: Optional[str] = None,
    id: Optional[str] = None,
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Atendimentos + participante + médico + fotos, mais recentes primeiro"""
    statement = select(Atendimento).where(*await read_scope(session, usuario, "atendimentos"))
    if evento_id:
        statement = statement.where(Atendimento.evento_id == evento_id)
    if id:
        statement = statement.where(Atendimento.id == id)
    statement = statement.order_by(col(Atendimento.created_at).desc())
    atendimentos = (await session.exec(statement)).all()
    if not atendimentos:
        return {"data": []}

    participante_ids = {a.participante_id for a in atendimentos}
    medico_ids = {a.medico_id for a in atendimentos}
    atendimento_ids = [a.id for a in atendimentos]

    participantes = {
        p.id: p for p in (await session.exec(
            select(Participante).where(col(Participante.id).in_(participante_ids))
        )).all()
    }
    medicos = {
        m.id: m for m in (await session.exec(
            select(Usuario).where(col(Usuario.id).in_(medico_ids))
        )).all()
    }
    fotos: Dict[str, List[AtendimentoFoto]] = {}
    for foto in (await session.exec(
        select(AtendimentoFoto)
        .where(col(AtendimentoFoto.atendimento_id).in_(atendimento_ids))
        .order_by(col(AtendimentoFoto.created_at))
    )).all():
        fotos.setdefault(foto.atendimento_id, []).append(foto)

    data = []
    for at in atendimentos:
        row = serialize("atendimentos", at)
        participante = participantes.get(at.participante_id)
        medico = medicos.get(at.medico_id)
        row["participante"] = serialize("participantes", participante) if participante else None
        row["medico"] = serialize("usuarios", medico) if medico else None
        row["fotos"] = [serialize("atendimento_fotos", f) for f in fotos.get(at.id, [])]
        data.append(row)
    return {"data": data}

# --- ARMAZENAMENTO DE ARQUIVOS ---
@app.post("/storage/{bucket}/{object_path:path}", status_code=201)
async def upload_object(
    bucket: str,
    object_path: str,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
):
    content = await request.body()
    if not content:
        raise HTTPException(status_code=400, detail="Arquivo vazio.")
    try:
        save_object(bucket, object_path, content)
    except StorageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileExistsError:
        raise HTTPException(status_code=409, detail="Objeto já existe.")

    return {"path": object_path, "public_url": public_url(str(request.base_url), bucket, object_path)}

@app.get("/storage/{bucket}/{object_path:path}")
async def download_object(bucket: str, object_path: str):
    try:
        path = resolve_object_path(bucket, object_path)
    except StorageError:
        raise HTTPException(status_code=404, detail="Objeto não encontrado.")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Objeto não encontrado.")
    return FileResponse(path)

# --- FEED DE MUDANÇAS (tempo real via polling) ---
@app.get("/changes/{resource_name}")
async def pull_changes(
    resource_name: str,
    since: Optional[int] = None,
    evento_id: Optional[str] = None,
    usuario: Usuario = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Retorna mudanças de QUALQUER recurso após o cursor 'since'.
    Sem 'since', devolve apenas o cursor atual (ponto de partida do cliente).
    """
    _model_or_404(resource_name)

    if since is None:
        return {"changes": [], "cursor": await current_cursor(session)}

    visiveis = await member_event_ids(session, usuario)
    changes = await list_changes(
        session, resource_name, since, evento_id,
        visible_eventos=list(visiveis) if visiveis is not None else None,
    )
    return {
        "changes": [c.model_dump(mode="json") for c in changes],
        "cursor": changes[-1].id if changes else since,
        "current_server_time": datetime.now(timezone.utc).isoformat(),
    }

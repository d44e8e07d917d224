import os
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from trekmed.models.usuario import Usuario, Sessao
from backend.database import get_session

# Em produção, AUTH_SALT deve vir de variáveis de ambiente seguras
AUTH_SALT = os.getenv("AUTH_SALT", "trekmed_segredo_dev")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "12"))
PBKDF2_ITERATIONS = 120_000

bearer_scheme = HTTPBearer(auto_error=False)

def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Gera hash PBKDF2 (salt por usuário + segredo do servidor)"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        f"{password}{AUTH_SALT}".encode(),
        salt.encode(),
        PBKDF2_ITERATIONS,
    )
    return f"pbkdf2${salt}${digest.hex()}"

def verify_password(password: str, stored_hash: str) -> bool:
    try:
        _, salt, _ = stored_hash.split("$", 2)
    except ValueError:
        return False
    return hmac.compare_digest(hash_password(password, salt), stored_hash)

def _as_aware(value: datetime) -> datetime:
    # SQLite devolve datetimes sem fuso
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

async def open_session(session: AsyncSession, usuario: Usuario) -> str:
    token = secrets.token_urlsafe(32)
    session.add(Sessao(
        token=token,
        usuario_id=usuario.id,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=SESSION_TTL_HOURS),
    ))
    await session.commit()
    return token

async def close_session(session: AsyncSession, token: str):
    sessao = await session.get(Sessao, token)
    if sessao:
        await session.delete(sessao)
        await session.commit()

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Usuario:
    """Resolve o usuário da sessão a partir do header Authorization: Bearer"""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado.")

    sessao = await session.get(Sessao, credentials.credentials)
    if not sessao or _as_aware(sessao.expires_at) < datetime.now(timezone.utc):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada ou inválida.")

    usuario = await session.get(Usuario, sessao.usuario_id)
    if not usuario or not usuario.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário inativo.")
    return usuario

async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None

async def find_user_by_email(session: AsyncSession, email: str) -> Optional[Usuario]:
    result = await session.exec(select(Usuario).where(Usuario.email == email.strip().lower()))
    return result.first()

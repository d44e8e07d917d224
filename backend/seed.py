import os
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from trekmed.models.permissao import (
    Permissao,
    GERENCIAR_EQUIPE,
    GERENCIAR_PARTICIPANTES,
    REGISTRAR_ATENDIMENTO,
    VER_DASHBOARD,
    EDITAR_ATENDIMENTO,
)
from trekmed.models.usuario import Usuario
from backend.security import hash_password

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@trekmed.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# (codigo, descricao, papel ao qual se aplica)
DEFAULT_PERMISSOES = [
    (GERENCIAR_EQUIPE, "Cadastrar e gerenciar membros da equipe do evento", "admin_evento"),
    (GERENCIAR_PARTICIPANTES, "Cadastrar, editar e excluir participantes", "admin_evento"),
    (REGISTRAR_ATENDIMENTO, "Registrar atendimentos em campo", "todos"),
    (VER_DASHBOARD, "Visualizar mapa e lista de atendimentos", "todos"),
    (EDITAR_ATENDIMENTO, "Alterar status de atendimentos", "todos"),
]

async def seed_permissoes(session: AsyncSession) -> int:
    """Garante o catálogo de permissões (idempotente)"""
    result = await session.exec(select(Permissao.codigo))
    existentes = set(result.all())
    novas = 0
    for codigo, descricao, role in DEFAULT_PERMISSOES:
        if codigo not in existentes:
            session.add(Permissao(codigo=codigo, descricao=descricao, aplica_a_role=role))
            novas += 1
    await session.commit()
    return novas

async def create_admin_if_empty(session: AsyncSession):
    """
    SEED: Cria um Super Admin padrão se não houver usuários.
    Essencial para o primeiro acesso.
    """
    if (await session.exec(select(Usuario))).first():
        return
    session.add(Usuario(
        nome="Super Admin",
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        is_super_admin=True,
    ))
    await session.commit()
    print(f"--- SUPER ADMIN CRIADO: {ADMIN_EMAIL} ---")

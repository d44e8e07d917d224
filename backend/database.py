import os
from dotenv import load_dotenv
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

# Registra todas as tabelas no metadata do SQLModel
from trekmed.models import evento, usuario, permissao, participante, atendimento, mudanca  # noqa: F401

# Carrega as variáveis do arquivo .env
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("A variável de ambiente DATABASE_URL não está definida!")

# SQLite (desenvolvimento/testes) não compartilha conexões entre loops
engine_options = {"poolclass": NullPool} if DATABASE_URL.startswith("sqlite") else {}

engine = create_async_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    future=True,
    **engine_options,
)

async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def init_db():
    """
    Cria as tabelas na inicialização.
    O SQLModel traduz os modelos Python para tabelas SQL (Postgres ou SQLite).
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def get_session() -> AsyncSession:
    """Injeção de dependência para rotas FastAPI"""
    async with async_session() as session:
        yield session

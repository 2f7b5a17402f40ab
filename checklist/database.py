# checklist/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from checklist.core.settings import settings

# Создаем движок подключения к БД
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# Создаем фабрику сессий (scoped_session для потокобезопасности)
SessionLocal = scoped_session(
    sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )
)

def init_db() -> None:
    """
    Создаёт все таблицы (вызывается на старте приложения).
    """
    import checklist.models  # noqa: F401
    from checklist.models.base import Base
    Base.metadata.create_all(bind=engine)

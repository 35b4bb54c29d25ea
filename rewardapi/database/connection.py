from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rewardapi.config import settings

engine_kwargs = {
    "pool_pre_ping": True,  # 연결 유효성 검사
}

if settings.database_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=3600,  # 1시간마다 연결 재생성
        connect_args={"options": f"-csearch_path={settings.POSTGRES_SCHEMA}"},
    )

engine = create_engine(settings.database_url, **engine_kwargs)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.shared.config import ROOT, settings

DB_URL = settings.DB_URL

def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # in-memory DB lives on one connection; share it across threads
        kwargs["poolclass"] = StaticPool
    return kwargs

if DB_URL.startswith(f"sqlite:///{ROOT.as_posix()}/storage/"):
    # Local SQLite DB under ./storage/ (created if missing)
    (ROOT / "storage").mkdir(parents=True, exist_ok=True)

engine = create_engine(DB_URL, **_engine_kwargs(DB_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

class Base(DeclarativeBase):
    pass

# FastAPI dep
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

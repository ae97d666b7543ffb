from app.database.base import Base
from app.database.engine import build_engine, engine
from app.database.session import SessionLocal, build_session_factory

__all__ = ["Base", "SessionLocal", "build_engine", "build_session_factory", "engine"]

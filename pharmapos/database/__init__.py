from pharmapos.database.base import Base
from pharmapos.database.engine import engine
from pharmapos.database.session import SessionLocal, get_db, session_scope

__all__ = ["Base", "SessionLocal", "engine", "get_db", "session_scope"]

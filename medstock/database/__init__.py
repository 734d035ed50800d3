from medstock.database.base import Base
from medstock.database.engine import engine
from medstock.database.session import SessionLocal

__all__ = ["Base", "engine", "SessionLocal"]

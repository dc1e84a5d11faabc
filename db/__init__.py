"""Database package for the local contact store."""
from db.connection import database_configured, dispose_engine, get_db, get_engine

__all__ = ["database_configured", "dispose_engine", "get_db", "get_engine"]

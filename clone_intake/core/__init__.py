"""Core module exports"""
from .config import settings, Settings
from .database import Base, engine, async_session_maker, get_db, build_engine

__all__ = ["settings", "Settings", "Base", "engine", "async_session_maker", "get_db", "build_engine"]

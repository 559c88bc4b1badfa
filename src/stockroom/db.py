"""SQLAlchemy engine and declarative base."""

import sqlite3
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from stockroom.settings import get_settings

DATABASE_URL = get_settings().database_url

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}
    # text() queries bind raw datetimes; keep the offset so reads round-trip
    sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)
Base = declarative_base()

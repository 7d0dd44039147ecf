"""Declarative bases for the two databases a scan touches.

``Base`` holds the results schema owned by orphanscan (SQLite). ``SourceBase``
maps the existing SQL Server tables that are only ever read; its metadata is
never created against production.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class SourceBase(DeclarativeBase):
    pass

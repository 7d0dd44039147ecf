"""FileLink, TreeReport, SettingEntry models — read-only source tables."""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import SourceBase


class FileLink(SourceBase):
    __tablename__ = "file_link"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    path: Mapped[str] = mapped_column(String(1000), nullable=False)
    module: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class TreeReport(SourceBase):
    __tablename__ = "tree_report"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rootlocation: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)


class SettingEntry(SourceBase):
    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

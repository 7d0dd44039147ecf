"""File search result model — one classification per scanned file."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class FileSearchResult(Base):
    __tablename__ = "file_search_results"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_modified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False, default="", index=True)
    record_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    module: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_orphaned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

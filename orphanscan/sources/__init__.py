"""Record sources read from the SQL Server database."""

from .loader import RecordSourceLoader

__all__ = ["RecordSourceLoader"]

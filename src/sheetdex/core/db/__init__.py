from .main import SheetStore
from .models import DataRow, FileRecord, db_proxy

__all__ = ["SheetStore", "DataRow", "FileRecord", "db_proxy"]

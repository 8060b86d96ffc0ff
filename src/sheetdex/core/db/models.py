import json
from typing import List, Optional

from peewee import (
    AutoField,
    BigIntegerField,
    CharField,
    DateTimeField,
    ForeignKeyField,
    IntegerField,
    Model,
    Proxy,
    TextField,
)

from ..utils import utc_now

db_proxy = Proxy()


class BaseModel(Model):
    class Meta:
        database = db_proxy


class FileRecord(BaseModel):
    """One imported spreadsheet file."""
    id = AutoField()
    file_path = TextField(unique=True)          # absolute path as scanned
    file_name = CharField()                     # base name, shown in results
    file_size = BigIntegerField(default=0)
    file_hash = CharField(index=True)           # MD5 of the file bytes
    field_order = TextField(null=True)          # JSON list of column names, first sheet first
    created_at = DateTimeField(default=utc_now)
    updated_at = DateTimeField(default=utc_now)

    class Meta:
        table_name = 'files'

    @property
    def field_order_list(self) -> Optional[List[str]]:
        if not self.field_order:
            return None
        try:
            value = json.loads(self.field_order)
        except ValueError:
            return None
        return value if isinstance(value, list) else None


class DataRow(BaseModel):
    """A single data row from one sheet of a FileRecord."""
    id = AutoField()
    file = ForeignKeyField(FileRecord, backref='rows', column_name='file_id', on_delete='CASCADE')
    sheet_name = CharField()
    row_number = IntegerField()                 # 1-based position among data rows
    data_json = TextField()                     # {column: typed value}
    search_text = TextField()                   # space-joined textual values
    import_time = DateTimeField(default=utc_now, index=True)

    class Meta:
        table_name = 'data_rows'
        indexes = (
            (('file', 'sheet_name', 'row_number'), False),
        )


ALL_MODELS = [FileRecord, DataRow]

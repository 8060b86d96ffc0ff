import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from sheetdex.core.db.main import SheetStore
from sheetdex.core.settings import Settings, settings as global_settings


@dataclass
class CommandContext:
    db_path: Path | str | None = None
    settings: Settings = field(default_factory=lambda: global_settings)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = Path(self.settings.db_path)
        else:
            self.db_path = Path(self.db_path).expanduser()

    def open_store(self) -> SheetStore:
        return SheetStore(str(self.db_path), busy_timeout=self.settings.BUSY_TIMEOUT_MS)

    def print_json(self, payload: dict | list) -> None:
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str), file=self.stdout)

    def print_err(self, text: str) -> None:
        print(text, file=self.stderr)

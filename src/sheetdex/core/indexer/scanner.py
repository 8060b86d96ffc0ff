import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from ..constants import DEFAULT_EXTENSIONS
from ..errors import InputError

logger = logging.getLogger("sheetdex.scanner")

# Office creates "~$Book1.xlsx" next to an open workbook.
LOCK_FILE_PREFIX = "~$"


class Scanner:
    def __init__(self, extensions: Optional[Iterable[str]] = None, follow_symlinks: bool = False):
        exts = extensions if extensions is not None else DEFAULT_EXTENSIONS
        self.extensions = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in exts}
        self.follow_symlinks = follow_symlinks

    def is_candidate(self, name: str) -> bool:
        if name.startswith(LOCK_FILE_PREFIX):
            return False
        return Path(name).suffix.lower() in self.extensions

    def scan(self, root) -> List[Path]:
        """Return every spreadsheet under ``root``, sorted by path."""
        root = Path(root)
        if not root.exists():
            raise InputError("folder does not exist", path=str(root))
        if not root.is_dir():
            raise InputError("path is not a directory", path=str(root))

        found: List[Path] = []
        visited = set()
        stack = [root]
        while stack:
            current = stack.pop()
            try:
                real = os.path.realpath(current)
                if real in visited:
                    continue
                visited.add(real)
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                logger.warning("Cannot list directory %s: %s", current, e)
                continue

            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=self.follow_symlinks):
                        stack.append(Path(entry.path))
                    elif entry.is_file(follow_symlinks=self.follow_symlinks) and self.is_candidate(entry.name):
                        found.append(Path(entry.path))
                except OSError as e:
                    logger.warning("Cannot inspect %s: %s", entry.path, e)

        found.sort()
        logger.debug("Scanned %s: %d spreadsheet(s)", root, len(found))
        return found

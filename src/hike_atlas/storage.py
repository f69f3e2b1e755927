import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FileSystemStore:
    """
    Reads and writes content files relative to a base directory.
    Absolute paths are used as given.
    """

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()

    def _resolve(self, path: str) -> Path:
        return self.base_dir / path

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read_text(self, path: str) -> str:
        with open(self._resolve(path), "r", encoding="utf-8") as f:
            return f.read()

    def write_text(self, path: str, content: str) -> None:
        target = self._resolve(path)
        os.makedirs(target.parent, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"Wrote {target}")

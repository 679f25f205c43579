from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, TextIO

from services.errors import DirectoryUnreadable, NoQualifyingFile
from settings import get_settings

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


class CsvDirectory:
    """Read-only view over a directory of exported CSV files."""

    def __init__(
        self,
        root_path: Path,
        suffix: str = ".csv",
        excluded_prefix: str = "_gsdata_",
        encoding: str = "utf-8-sig",
    ) -> None:
        self.root_path = root_path
        self.suffix = suffix
        self.excluded_prefix = excluded_prefix
        self.encoding = encoding

    def qualifies(self, name: str) -> bool:
        if not name.endswith(self.suffix):
            return False
        if name.startswith(HIDDEN_PREFIX):
            return False
        if self.excluded_prefix and name.startswith(self.excluded_prefix):
            return False
        return True

    def list_files(self) -> List[str]:
        """Return qualifying file names, newest first.

        Files sharing a modification time are ordered by name.
        """
        try:
            with os.scandir(self.root_path) as iterator:
                entries = list(iterator)
        except OSError as exc:
            raise DirectoryUnreadable(
                f"Cannot read CSV directory {str(self.root_path)!r}: {exc}"
            ) from exc

        candidates: list[tuple[float, str]] = []
        for entry in entries:
            if not self.qualifies(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                mtime = entry.stat().st_mtime
            except OSError as exc:
                logger.warning(
                    "Skipping unreadable export: %s",
                    exc,
                    extra={"directory": str(self.root_path), "file_name": entry.name},
                )
                continue
            candidates.append((mtime, entry.name))

        candidates.sort(key=lambda item: (-item[0], item[1]))
        return [name for _, name in candidates]

    def latest_file(self) -> str:
        files = self.list_files()
        if not files:
            raise NoQualifyingFile(
                f"No {self.suffix} files found in {str(self.root_path)!r}."
            )
        return files[0]

    def resolve(self, name: str) -> Path:
        if Path(name).name != name or not self.qualifies(name):
            raise NoQualifyingFile(f"File {name!r} is not available.")
        path = self.root_path / name
        if not path.is_file():
            raise NoQualifyingFile(f"File {name!r} is not available.")
        return path

    @contextmanager
    def open_text(self, name: str, newline: Optional[str] = "") -> Iterator[TextIO]:
        """Yield a text handle for a qualifying file in the directory."""
        path = self.resolve(name)
        with path.open("r", encoding=self.encoding, newline=newline) as handle:
            yield handle


@lru_cache
def build_default_directory(root_path: Optional[str] = None) -> CsvDirectory:
    settings = get_settings()
    directory = settings.csv_dir if root_path is None else root_path
    return CsvDirectory(
        root_path=Path(directory),
        suffix=settings.csv_suffix,
        excluded_prefix=settings.excluded_prefix,
        encoding=settings.csv_encoding,
    )

import os
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterator, List, Optional

from tqdm import tqdm

from ..exceptions import ScanError
from ..models import SourceFile
from .identity import IdentityResolver


@dataclass(frozen=True)
class DateFilter:
    """
    Restricts a scan to one day (`on`) or to an inclusive range (`from_`..`to`).
    """
    on: Optional[date] = None
    from_: Optional[date] = None
    to: Optional[date] = None

    def __post_init__(self):
        if self.on is not None and (self.from_ is not None or self.to is not None):
            raise ValueError("'on' cannot be combined with 'from'/'to'")
        if self.to is not None and self.from_ is None:
            raise ValueError("'to' requires 'from'")

    def matches(self, day: date) -> bool:
        if self.on is not None and day != self.on:
            return False
        if self.from_ is not None and day < self.from_:
            return False
        if self.to is not None and day > self.to:
            return False
        return True


class SourceScanner:
    def __init__(self, resolver: IdentityResolver, show_progress: bool = False):
        self.resolver = resolver
        self.show_progress = show_progress

    def scan(self, root: Path, date_filter: Optional[DateFilter] = None) -> List[SourceFile]:
        """
        Resolves every file under root.

        Unrecognized files are reported and left out. Any error on a
        recognized file aborts the whole scan: planning needs the full set.
        """
        if not root.is_dir():
            raise ScanError(f"Source directory not found: {root}")

        paths = list(self._iter_files(root))
        files: List[SourceFile] = []

        for path in tqdm(paths, desc="Scanning", unit="file", disable=not self.show_progress):
            file = self.resolver.resolve(path)

            if file is None:
                logging.warning(f"{path}: unrecognized")
                continue

            logging.debug(f"Found {path}")

            if date_filter is None or date_filter.matches(file.date):
                files.append(file)

        files.sort(key=lambda f: f.path)
        logging.info(f"Scan complete. {len(files)} of {len(paths)} files selected.")
        return files

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                raise ScanError(f"Couldn't read directory {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name)

            dirs = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    yield Path(e.path)

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

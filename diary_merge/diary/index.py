"""
Read/write access to the diary tree (<root>/YYYY/MM/DD/<filename>).
"""
import logging
import shutil
from datetime import date
from pathlib import Path
from typing import Set

from ..exceptions import DiaryConflictError, DiaryError, FileOperationError
from ..models import DiaryLocation


class DiaryIndex:
    def __init__(self, root: Path):
        if not root.exists():
            raise DiaryError(f"Diary directory not found: {root}")
        self.root = root

    def dir_for(self, day: date) -> Path:
        return self.root / f"{day.year:04}" / f"{day.month:02}" / f"{day.day:02}"

    def path_for(self, location: DiaryLocation) -> Path:
        return self.dir_for(location.date) / location.filename

    def exists(self, location: DiaryLocation) -> bool:
        return self.path_for(location).exists()

    def list_by_date(self, day: date) -> Set[str]:
        """Returns the names of the files stored under `day`."""
        folder = self.dir_for(day)
        if not folder.exists():
            return set()

        names = set()
        try:
            for entry in folder.iterdir():
                if entry.is_dir():
                    continue
                try:
                    entry.name.encode("utf-8")
                except UnicodeEncodeError as e:
                    raise DiaryError(f"Diary file has non-Unicode name: {entry}") from e
                names.add(entry.name)
        except OSError as e:
            raise DiaryError(f"Couldn't list diary directory: {folder}") from e

        return names

    def put(self, src: Path, location: DiaryLocation):
        """
        Copies `src` into the diary. Never overwrites: an existing destination
        is a DiaryConflictError.
        """
        dest = self.path_for(location)

        if dest.exists():
            raise DiaryConflictError(
                f"Cannot add `{src}` into diary, because it would overwrite `{location}`"
            )

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Couldn't create directory: {dest.parent}") from e

        try:
            shutil.copy2(src, dest)
        except OSError as e:
            # A half-written file would look like a finished import on the next run
            if dest.exists():
                try:
                    dest.unlink()
                except OSError:
                    logging.error(f"Couldn't remove partial copy: {dest}")
            raise FileOperationError(f"Couldn't copy `{src}` to `{dest}`: {e}") from e

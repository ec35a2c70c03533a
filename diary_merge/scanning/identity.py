import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Tuple

from .. import config
from ..exceptions import IdentityError, MetadataExtractionError
from ..metadata.extract import MetadataSource
from ..models import Kind, Note, Photo, SourceFile, Video


def _is_number(value: str) -> bool:
    # Stricter than int(): plain ASCII digits only
    return value.isascii() and value.isdigit()


class IdentityResolver:
    """
    Turns a path from the source tree into a SourceFile.

    Media timestamps are taken, in order of preference, from a
    `YYYY-MM-DD_HH-MM-SS_ID` file name, from the embedded metadata, and from
    the filesystem.
    """
    def __init__(self, metadata: MetadataSource):
        self.metadata = metadata

    def resolve(self, path: Path) -> Optional[SourceFile]:
        """
        Returns None for files whose extension is not recognized.

        Raises:
            IdentityError: the extension is recognized but the file is not
                usable (bad date in the name, non-Unicode name, no timestamp).
        """
        if not path.suffix or not path.stem:
            return None

        try:
            stem = self._require_unicode(path.stem, "stem")
            ext = self._require_unicode(path.suffix[1:], "extension").lower()

            kind_name = config.EXT_TO_KIND.get(ext)
            if kind_name is None:
                return None

            if kind_name == 'note':
                kind: Kind = Note(date=self._parse_note_date(stem))
            else:
                kind = self._resolve_media(path, stem, kind_name)
        except IdentityError as e:
            raise IdentityError(f"Couldn't identify file: {path}: {e}") from e
        except MetadataExtractionError as e:
            raise MetadataExtractionError(f"Couldn't identify file: {path}: {e}", output=e.output) from e

        return SourceFile(path=path, stem=stem, ext=ext, kind=kind)

    def _require_unicode(self, value: str, what: str) -> str:
        # Undecodable bytes surface as lone surrogates
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise IdentityError(f"File has non-Unicode {what}") from e
        return value

    def _parse_note_date(self, stem: str) -> date:
        parts = stem.split('-')
        names = ("year", "month", "day")

        values = []
        for idx, name in enumerate(names):
            if idx >= len(parts):
                raise IdentityError(f"Invalid name: missing {name}")
            if not _is_number(parts[idx]):
                raise IdentityError(f"Invalid name: invalid {name}")
            values.append(int(parts[idx]))

        try:
            return date(*values)
        except ValueError:
            raise IdentityError("Invalid name: invalid date") from None

    def _resolve_media(self, path: Path, stem: str, kind_name: str) -> Kind:
        timestamp, capture_id = None, None

        parsed = self._parse_media_name(stem)
        if parsed:
            timestamp, capture_id = parsed

        if timestamp is None:
            timestamp = self.metadata.timestamp(path, kind_name)

        if timestamp is None:
            timestamp = self._filesystem_timestamp(path)

        if capture_id is None:
            capture_id = self._capture_id_from_prefix(stem)

        if kind_name == 'photo':
            return Photo(timestamp=timestamp, capture_id=capture_id)
        return Video(timestamp=timestamp, capture_id=capture_id)

    def _parse_media_name(self, stem: str) -> Optional[Tuple[datetime, Optional[str]]]:
        """Parses `YYYY-MM-DD_HH-MM-SS_ID`; returns None for any other shape."""
        parts = stem.split('_')
        if len(parts) != 3:
            return None

        d_str, t_str, capture_id = parts
        d_parts = d_str.split('-')
        t_parts = t_str.split('-')
        if len(d_parts) != 3 or len(t_parts) != 3:
            return None

        if not all(_is_number(p) for p in d_parts + t_parts):
            raise IdentityError(f"Invalid name: non-numeric date or time in {stem!r}")
        values = [int(p) for p in d_parts + t_parts]

        try:
            timestamp = datetime(*values)
        except ValueError:
            raise IdentityError(f"Invalid name: invalid date or time in {stem!r}") from None

        return timestamp, capture_id or None

    def _capture_id_from_prefix(self, stem: str) -> Optional[str]:
        for prefix in config.CAPTURE_ID_PREFIXES:
            if stem.startswith(prefix) and len(stem) > len(prefix):
                return stem[len(prefix):]
        return None

    def _filesystem_timestamp(self, path: Path) -> datetime:
        """Earlier of creation and modification time, in local time."""
        try:
            st = path.stat()
        except OSError as e:
            raise IdentityError(f"Cannot determine file timestamp: {e}") from e

        candidates = [ts for ts in (getattr(st, "st_birthtime", None), st.st_mtime) if ts is not None]
        if not candidates:
            raise IdentityError("Cannot determine file timestamp")

        logging.debug(f"No embedded timestamp in {path}, using filesystem time")
        return datetime.fromtimestamp(min(candidates))

import logging
import re
import subprocess
from pathlib import Path
from datetime import datetime, timezone, tzinfo
from typing import Optional, Protocol

import exifread
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import MetadataExtractionError


class MetadataSource(Protocol):
    """Anything that can read the capture timestamp embedded in a media file."""

    def timestamp(self, path: Path, kind: str) -> Optional[datetime]:
        """
        Returns the naive local capture time of `path`, or None when the file
        carries no usable date for `kind` ('photo' or 'video').
        """
        ...


def parse_exiftool_date(value: str, utc: bool = False, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Parses exiftool's "YYYY:MM:DD HH:MM:SS" format.

    Fractional seconds and a trailing zone offset ("-05:00", "+02:00", "Z")
    are dropped. When `utc` is set the value is converted to `tz` (local time
    by default) and returned naive. Returns None if the value is malformed.
    """
    parts = value.strip().split(' ')
    if len(parts) != 2:
        return None

    d, t = parts
    t = re.split(r'[-+Z]', t, maxsplit=1)[0]

    d_parts = d.split(':')
    t_parts = t.split(':')
    if len(d_parts) != 3 or len(t_parts) != 3:
        return None
    t_parts[2] = t_parts[2].split('.')[0]

    try:
        dt = datetime(*(int(p) for p in d_parts + t_parts))
    except ValueError:
        return None

    if utc:
        dt = dt.replace(tzinfo=timezone.utc).astimezone(tz).replace(tzinfo=None)
    return dt


class MetadataExtractor:
    """
    Default MetadataSource.

    Strategies:
      - Photos: 'exifread' (fast, Python-native) -> falls back to 'exiftool'.
      - Videos: 'pymediainfo' (fast wrapper) -> falls back to 'exiftool'.

    The Python libraries are best-effort; exiftool has the final word, and a
    failure to run it is fatal.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        # None means the local timezone
        self.tz = tz

    def timestamp(self, path: Path, kind: str) -> Optional[datetime]:
        tag, utc = config.METADATA_TAGS[kind]

        if kind == 'photo':
            dt = self._extract_exifread(path)
        else:
            dt = self._extract_mediainfo(path)

        if dt:
            return dt

        return self._extract_exiftool(path, tag, utc)

    # --- Internal Extraction Helpers ---

    def _extract_exifread(self, path: Path) -> Optional[datetime]:
        try:
            with path.open('rb') as f:
                # details=False speeds up processing significantly
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            logging.debug(f"ExifRead failed for {path}: {e}")
            return None

        if config.EXIFREAD_DATE_TAG not in tags:
            return None

        value = str(tags[config.EXIFREAD_DATE_TAG]).strip()
        if value in config.EMPTY_TIMESTAMPS:
            return None
        return parse_exiftool_date(value)

    def _extract_mediainfo(self, path: Path) -> Optional[datetime]:
        """Reads the container's creation date (stored in UTC) with pymediainfo."""
        try:
            mi = MediaInfo.parse(str(path))
        except Exception as e:
            # Usually means libmediainfo is missing; exiftool takes over
            logging.debug(f"MediaInfo failed for {path}: {e}")
            return None

        for track in mi.tracks:
            if track.track_type != "General":
                continue

            for field in config.MEDIAINFO_DATE_FIELDS:
                val = getattr(track, field, None)
                if not val:
                    continue
                dt = self._parse_mediainfo_date(str(val))
                if dt and dt.year != config.QUICKTIME_EPOCH_YEAR:
                    return dt.replace(tzinfo=timezone.utc).astimezone(self.tz).replace(tzinfo=None)
        return None

    def _extract_exiftool(self, path: Path, tag: str, utc: bool) -> Optional[datetime]:
        """
        Wraps the 'exiftool' command line utility.
        Must be installed and on the system PATH.
        """
        # -s = tag names instead of descriptions
        # -T = table output, "-" for a missing tag
        cmd = [config.EXIFTOOL_BIN, "-s", "-T", f"-{tag}", str(path)]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except OSError as e:
            raise MetadataExtractionError(f"Couldn't launch exiftool: {e}") from e

        out = result.stdout.strip()
        if out in config.EMPTY_TIMESTAMPS:
            return None

        dt = parse_exiftool_date(out)
        if dt is None:
            raise MetadataExtractionError(
                f"Couldn't parse exiftool's response: {out}",
                output=result.stdout + result.stderr,
            )
        # The epoch marks an unset QuickTime date; test it before shifting zones
        if dt.year == config.QUICKTIME_EPOCH_YEAR:
            return None
        if utc:
            dt = dt.replace(tzinfo=timezone.utc).astimezone(self.tz).replace(tzinfo=None)
        return dt

    def _parse_mediainfo_date(self, dt_str: str) -> Optional[datetime]:
        """
        Handles the MediaInfo formats ("2020-01-01 12:00:00 UTC",
        "UTC 2020-01-01 12:00:00", ISO). Returns a naive datetime.
        """
        clean = dt_str.replace("UTC", "").strip()

        try:
            dt = datetime.fromisoformat(clean)
            if dt.tzinfo:
                dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
            return dt
        except ValueError:
            pass

        # Sub-second precision, which strptime hates
        if "." in clean:
            clean = clean.split(".")[0]
        try:
            return datetime.strptime(clean, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None

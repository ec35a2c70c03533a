import logging
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from ..models import Photo, SourceFile


class CaptureLinker:
    """
    Handles relationship discovery between photos and videos of one capture
    (e.g. the still and motion halves of a Live Photo).

    The index covers the files of the current run only; pairs already in the
    diary are found by the planner through the DiaryIndex.
    """
    def __init__(self, files: Sequence[SourceFile]):
        # Index by (date, capture_id) for O(1) lookup
        self.photos: Dict[Tuple[date, str], List[Path]] = defaultdict(list)

        for file in files:
            if isinstance(file.kind, Photo) and file.kind.capture_id:
                self.photos[(file.date, file.kind.capture_id)].append(file.path)

        logging.debug(f"Indexed {len(self.photos)} photo captures.")

    def has_photo(self, day: date, capture_id: str) -> bool:
        return (day, capture_id) in self.photos

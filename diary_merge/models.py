from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union


@dataclass(frozen=True)
class Note:
    """A plain date-stamped document."""
    date: date


@dataclass(frozen=True)
class Photo:
    timestamp: datetime
    capture_id: Optional[str] = None

    @property
    def date(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True)
class Video:
    timestamp: datetime
    capture_id: Optional[str] = None

    @property
    def date(self) -> date:
        return self.timestamp.date()


Kind = Union[Note, Photo, Video]


@dataclass(frozen=True)
class SourceFile:
    """
    Represents a recognized file found in the source tree.
    """
    path: Path
    stem: str
    ext: str                # lower-cased, without the leading dot
    kind: Kind

    @property
    def date(self) -> date:
        return self.kind.date

    @property
    def capture_id(self) -> Optional[str]:
        if isinstance(self.kind, (Photo, Video)):
            return self.kind.capture_id
        return None


@dataclass(frozen=True)
class DiaryLocation:
    """Addresses one file inside the diary (YYYY/MM/DD/filename)."""
    date: date
    filename: str

    def __str__(self):
        return f"diary:{self.date.year:04}/{self.date.month:02}/{self.date.day:02}/{self.filename}"


# --- Plan Steps ---

@dataclass(frozen=True)
class ImportStep:
    src: Path
    dst: DiaryLocation
    transcode: bool = False


@dataclass(frozen=True)
class SkipStep:
    src: Path
    reason: str


@dataclass(frozen=True)
class DeleteStep:
    src: Path
    reason: str


Step = Union[ImportStep, SkipStep, DeleteStep]


@dataclass
class Plan:
    """
    Ordered list of decided actions for one batch of source files.
    """
    steps: List[Step] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def extend(self, steps: List[Step]):
        self.steps.extend(steps)


@dataclass
class Stats:
    imported: int = 0
    skipped: int = 0
    deleted: int = 0

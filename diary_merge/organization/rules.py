from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Set

from .. import config
from ..diary.index import DiaryIndex
from ..metadata.linking import CaptureLinker
from ..models import (
    DeleteStep, DiaryLocation, ImportStep, Note, Photo, Plan, SkipStep,
    SourceFile, Step, Video,
)

REASON_PRESENT = "already in the diary"
REASON_PLANNED = "already being added into the diary"
REASON_AS_PHOTO = "already in the diary as a photo"
REASON_OTHER_TIMESTAMP = "already in the diary - under a different timestamp, though!"
REASON_JUST_ADDED = "just added into the diary"


def media_name(stem: str, timestamp: datetime, capture_id: Optional[str]) -> str:
    """
    Base name (without extension) of a photo or video inside the diary:
    "<HH-MM-SS> <capture id | screenshot | screencast | recording | stem>".
    """
    time = timestamp.strftime(config.TIME_FORMAT)

    if capture_id:
        return f"{time} {capture_id}"

    for prefix, label in config.NAME_OVERRIDES:
        if stem.startswith(prefix):
            return f"{time} {label}"

    return f"{time} {stem}"


class MergePlanner:
    """
    Decides, for every scanned file, whether it is imported, skipped or
    deleted, and orders the decisions into a Plan.

    Needs the complete batch up front: a video's fate depends on the photos
    scanned alongside it.
    """
    def __init__(self, diary: DiaryIndex, remove: bool = False, transcode_videos: bool = False):
        self.diary = diary
        self.remove = remove
        self.transcode_videos = transcode_videos
        # Targets claimed by earlier files of this run
        self.planned: Set[DiaryLocation] = set()
        # Snapshot of the diary's day directories, loaded on demand
        self._listings: Dict[date, Set[str]] = {}

    def plan(self, files: Sequence[SourceFile]) -> Plan:
        linker = CaptureLinker(files)
        plan = Plan()

        for file in files:
            if isinstance(file.kind, Note):
                steps = self._plan_note(file)
            elif isinstance(file.kind, Photo):
                steps = self._plan_photo(file)
            elif isinstance(file.kind, Video):
                steps = self._plan_video(file, linker)
            else:
                raise TypeError(f"Unknown source kind: {file.kind!r}")

            plan.extend(steps)

        return plan

    def target(self, file: SourceFile) -> DiaryLocation:
        """Where `file` would be stored if imported."""
        kind = file.kind
        if isinstance(kind, Note):
            return DiaryLocation(kind.date, config.NOTE_FILENAME)

        ext = file.ext
        if isinstance(kind, Video) and self.transcode_videos:
            ext = config.TRANSCODE_EXT

        name = media_name(file.stem, kind.timestamp, kind.capture_id)
        return DiaryLocation(kind.date, f"{name}.{ext}")

    # --- Per-kind rules ---

    def _plan_note(self, file: SourceFile) -> List[Step]:
        dst = self.target(file)
        present = self._check_present(file, dst)
        if present:
            return present
        return self._import(file, dst)

    def _plan_photo(self, file: SourceFile) -> List[Step]:
        dst = self.target(file)
        present = self._check_present(file, dst)
        if present:
            return present

        if self._has_capture_elsewhere(file):
            return [self._skip_or_remove(file, REASON_OTHER_TIMESTAMP)]

        return self._import(file, dst)

    def _plan_video(self, file: SourceFile, linker: CaptureLinker) -> List[Step]:
        dst = self.target(file)
        present = self._check_present(file, dst)
        if present:
            return present

        base = dst.filename.rsplit('.', 1)[0]
        # Stored untranscoded by an earlier run
        if self.transcode_videos and self.diary.exists(DiaryLocation(dst.date, f"{base}.{file.ext}")):
            return [self._skip_or_remove(file, REASON_PRESENT)]

        has_photo = any(
            self.diary.exists(DiaryLocation(dst.date, f"{base}.{ext}"))
            for ext in sorted(config.PHOTO_EXTS)
        )

        capture_id = file.capture_id
        will_have_photo = capture_id is not None and linker.has_photo(file.date, capture_id)

        if has_photo or will_have_photo:
            return [self._skip_or_remove(file, REASON_AS_PHOTO)]

        if self._has_capture_elsewhere(file):
            return [self._skip_or_remove(file, REASON_OTHER_TIMESTAMP)]

        return self._import(file, dst, transcode=self.transcode_videos)

    # --- Shared rules ---

    def _check_present(self, file: SourceFile, dst: DiaryLocation) -> List[Step]:
        if self.diary.exists(dst):
            return [self._skip_or_remove(file, REASON_PRESENT)]
        if dst in self.planned:
            return [self._skip_or_remove(file, REASON_PLANNED)]
        return []

    def _has_capture_elsewhere(self, file: SourceFile) -> bool:
        """
        True if the diary already holds this capture id under another name,
        i.e. the source timestamp disagrees with the archived copy.

        Photos only look for photos: an archived companion video must not
        keep its still out. Videos look for any media file.

        This is a plain suffix match on " <id>.<ext>"; an unrelated file that
        happens to end the same way also counts.
        """
        capture_id = file.capture_id
        if not capture_id:
            return False

        exts = config.PHOTO_EXTS if isinstance(file.kind, Photo) else config.MEDIA_EXTS
        suffixes = tuple(f" {capture_id}.{ext}" for ext in sorted(exts))
        return any(name.endswith(suffixes) for name in self._list(file.date))

    def _list(self, day: date) -> Set[str]:
        if day not in self._listings:
            self._listings[day] = self.diary.list_by_date(day)
        return self._listings[day]

    def _import(self, file: SourceFile, dst: DiaryLocation, transcode: bool = False) -> List[Step]:
        self.planned.add(dst)
        steps: List[Step] = [ImportStep(src=file.path, dst=dst, transcode=transcode)]
        if self.remove:
            steps.append(DeleteStep(src=file.path, reason=REASON_JUST_ADDED))
        return steps

    def _skip_or_remove(self, file: SourceFile, reason: str) -> Step:
        if self.remove:
            return DeleteStep(src=file.path, reason=reason)
        return SkipStep(src=file.path, reason=reason)


def plan(files: Sequence[SourceFile], diary: DiaryIndex, remove_after_import: bool = False,
         transcode_videos: bool = False) -> Plan:
    """Plans one batch; see MergePlanner."""
    return MergePlanner(diary, remove=remove_after_import, transcode_videos=transcode_videos).plan(files)

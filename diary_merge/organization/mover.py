import logging
from pathlib import Path
from typing import Optional

from ..diary.index import DiaryIndex
from ..exceptions import FileOperationError, PlanError
from ..metadata.transcode import Transcoder
from ..models import DeleteStep, ImportStep, Plan, SkipStep, Stats, Step

VERBS = {
    # step type: (present, dry run)
    ImportStep: ("Importing", "Would import"),
    SkipStep: ("Skipping", "Would skip"),
    DeleteStep: ("Deleting", "Would delete"),
}


def describe(step: Step, dry_run: bool = False) -> str:
    """One human-readable line for a step, without progress."""
    if type(step) not in VERBS:
        raise PlanError(f"Unknown step type: {step!r}")

    verb = VERBS[type(step)][1 if dry_run else 0]
    if isinstance(step, ImportStep):
        return f"{verb} {step.src} to {step.dst}"
    return f"{verb} {step.src} ({step.reason})"


class PlanExecutor:
    def __init__(self, diary: DiaryIndex, transcoder: Optional[Transcoder] = None):
        self.diary = diary
        self.transcoder = transcoder

    def execute(self, plan: Plan, dry_run: bool = False) -> Stats:
        """
        Replays the plan step by step. Under dry_run nothing on disk changes,
        but every step is reported and counted as if it had run.
        """
        stats = Stats()
        step_count = len(plan)

        for idx, step in enumerate(plan, start=1):
            logging.info(f"  {describe(step, dry_run)} | {idx}/{step_count}")

            if isinstance(step, ImportStep):
                if not dry_run:
                    self._import(step)
                stats.imported += 1
            elif isinstance(step, SkipStep):
                stats.skipped += 1
            else:
                if not dry_run:
                    self._delete(step.src)
                stats.deleted += 1

        return stats

    def _import(self, step: ImportStep):
        if not step.transcode:
            self.diary.put(step.src, step.dst)
            return

        if self.transcoder is None:
            raise PlanError(f"Plan asks to transcode {step.src}, but no transcoder is configured")

        logging.info(f"  Transcoding {step.src}")
        output = self.transcoder.transcode(step.src)
        try:
            self.diary.put(output, step.dst)
        finally:
            self.transcoder.cleanup(output)

    def _delete(self, src: Path):
        try:
            src.unlink()
        except OSError as e:
            raise FileOperationError(f"Couldn't remove: {src}: {e}") from e

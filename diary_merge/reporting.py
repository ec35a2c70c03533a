import csv
import logging
from pathlib import Path
from typing import List

from .exceptions import PlanError
from .models import DeleteStep, ImportStep, Plan, SkipStep, Stats


def summary_lines(stats: Stats, dry_run: bool = False) -> List[str]:
    """
    E.g. ["Skipped 2 files", "Imported 1 file"]. Zero counts are left out.
    """
    rows = [
        (stats.skipped, "Skipped", "Would skip"),
        (stats.imported, "Imported", "Would import"),
        (stats.deleted, "Deleted", "Would delete"),
    ]

    lines = []
    for count, verb, verb_dry_run in rows:
        if count > 0:
            plural = "s" if count > 1 else ""
            lines.append(f"{verb_dry_run if dry_run else verb} {count} file{plural}")
    return lines


class PlanReport:
    headers = [
        "Step",
        "Action",
        "Source Path",
        "Destination",
        "Reason",
    ]

    def write_csv(self, plan: Plan, output_csv: Path):
        """Writes one row per plan step, in execution order."""
        logging.info(f"Writing plan report -> {output_csv}")

        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.headers)

            for idx, step in enumerate(plan, start=1):
                writer.writerow(self._row(idx, step))

    def _row(self, idx: int, step) -> list:
        if isinstance(step, ImportStep):
            action = "Import (transcode)" if step.transcode else "Import"
            return [idx, action, str(step.src), str(step.dst), ""]
        if isinstance(step, SkipStep):
            return [idx, "Skip", str(step.src), "", step.reason]
        if isinstance(step, DeleteStep):
            return [idx, "Delete", str(step.src), "", step.reason]
        raise PlanError(f"Unknown step type: {step!r}")

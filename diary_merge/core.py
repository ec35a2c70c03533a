import logging
from pathlib import Path
from typing import Optional

from .diary.index import DiaryIndex
from .metadata.extract import MetadataExtractor, MetadataSource
from .metadata.transcode import Transcoder
from .models import Stats
from .organization.mover import PlanExecutor
from .organization.rules import MergePlanner
from .reporting import PlanReport, summary_lines
from .scanning.filesystem import DateFilter, SourceScanner
from .scanning.identity import IdentityResolver


class DiaryMergeApp:
    def __init__(self,
                 diary_root: Path,
                 metadata: Optional[MetadataSource] = None,
                 transcoder: Optional[Transcoder] = None,
                 show_progress: bool = False):
        self.diary = DiaryIndex(diary_root)
        self.metadata = metadata or MetadataExtractor()
        self.transcoder = transcoder
        self.show_progress = show_progress

    def add(self,
            src_root: Path,
            date_filter: Optional[DateFilter] = None,
            remove: bool = False,
            dry_run: bool = False,
            report_csv: Optional[Path] = None) -> Stats:
        """
        Merges src_root into the diary.
        1. Scan (resolve every file; any bad file aborts before changes)
        2. Plan (import / skip / delete per file)
        3. Execute (copy into the diary, delete sources in remove mode)
        """
        # --- Step 1: Scanning ---
        logging.info("Scanning")
        resolver = IdentityResolver(self.metadata)
        scanner = SourceScanner(resolver, show_progress=self.show_progress)
        files = scanner.scan(src_root, date_filter)

        # --- Step 2: Planning ---
        logging.info("Processing")
        planner = MergePlanner(self.diary, remove=remove, transcode_videos=self.transcoder is not None)
        plan = planner.plan(files)

        if report_csv:
            PlanReport().write_csv(plan, report_csv)

        # --- Step 3: Execution ---
        logging.info("Executing")
        executor = PlanExecutor(self.diary, transcoder=self.transcoder)
        stats = executor.execute(plan, dry_run=dry_run)

        logging.info("Summary")
        for line in summary_lines(stats, dry_run):
            logging.info(f"  {line}")

        return stats

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from .core import DiaryMergeApp
from .exceptions import DiaryMergeError
from .metadata.transcode import FfmpegTranscoder
from .scanning.filesystem import DateFilter


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, to a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Diary Merge: import a source tree into the diary")

    p.add_argument("--diary", type=Path, required=True, help="Diary root (YYYY/MM/DD/...)")
    p.add_argument("--source", type=Path, required=True, help="Source directory to scan")

    p.add_argument("--on", type=date.fromisoformat, default=None, help="Only files from this day (YYYY-MM-DD)")
    p.add_argument("--from", dest="from_", type=date.fromisoformat, default=None, help="Only files from this day onwards")
    p.add_argument("--to", type=date.fromisoformat, default=None, help="Only files up to this day (requires --from)")

    p.add_argument("--remove", action="store_true", help="Delete source files once they are in the diary")
    p.add_argument("--dry-run", action="store_true", help="Simulate actions without modifying disk")
    p.add_argument("--transcode", action="store_true", help="Re-encode videos to mp4 with ffmpeg before import")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("--report-csv", type=Path, default=None, help="Write the plan to this CSV file")

    args = p.parse_args(argv)

    try:
        args.date_filter = DateFilter(on=args.on, from_=args.from_, to=args.to)
    except ValueError as e:
        p.error(str(e))

    return args


def main(argv=None):
    args = parse_args(argv)

    setup_logging(args.verbose, args.log_file)

    logging.info("=== Diary Merge Started ===")
    logging.info(f"Source: {args.source}")
    logging.info(f"Diary:  {args.diary}")

    transcoder = FfmpegTranscoder() if args.transcode else None

    try:
        app = DiaryMergeApp(args.diary, transcoder=transcoder, show_progress=not args.verbose)
        app.add(
            src_root=args.source,
            date_filter=args.date_filter,
            remove=args.remove,
            dry_run=args.dry_run,
            report_csv=args.report_csv,
        )
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except DiaryMergeError as e:
        logging.error(str(e))
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during merge.")
        sys.exit(1)


if __name__ == "__main__":
    main()

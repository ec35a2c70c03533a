import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from .. import config
from ..exceptions import TranscodeError


class Transcoder(Protocol):
    output_ext: str

    def transcode(self, src: Path) -> Path:
        """Re-encodes `src` into a temporary file and returns its path."""
        ...

    def cleanup(self, output: Path):
        """Disposes of a file previously returned by transcode()."""
        ...


class FfmpegTranscoder:
    """
    Re-encodes videos to H.264/AAC mp4 with the 'ffmpeg' command line utility.
    Must be installed and on the system PATH.
    """
    output_ext = config.TRANSCODE_EXT

    def __init__(self, binary: str = config.FFMPEG_BIN):
        self.binary = binary

    def transcode(self, src: Path) -> Path:
        tmp_dir = Path(tempfile.mkdtemp(prefix="diary-merge-"))
        output = tmp_dir / f"{src.stem}.{self.output_ext}"

        cmd = [self.binary, "-y", "-i", str(src), *config.TRANSCODE_ARGS, str(output)]
        logging.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except OSError as e:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise TranscodeError(f"Couldn't launch {self.binary}: {e}") from e

        if result.returncode != 0:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise TranscodeError(
                f"Couldn't transcode {src} ({self.binary} exited with {result.returncode})",
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return output

    def cleanup(self, output: Path):
        shutil.rmtree(output.parent, ignore_errors=True)

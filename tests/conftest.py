import pytest
from pathlib import Path
from datetime import datetime
from diary_merge.diary.index import DiaryIndex


class FakeMetadata:
    """MetadataSource returning canned timestamps keyed by file name."""
    def __init__(self, timestamps=None):
        self.timestamps = dict(timestamps or {})
        self.calls = []

    def timestamp(self, path, kind):
        self.calls.append((path.name, kind))
        return self.timestamps.get(path.name)


class FakeTranscoder:
    output_ext = "mp4"

    def __init__(self, work_dir: Path):
        self.work_dir = work_dir
        self.transcoded = []
        self.cleaned = []

    def transcode(self, src):
        self.work_dir.mkdir(parents=True, exist_ok=True)
        out = self.work_dir / f"{src.stem}.mp4"
        out.write_bytes(b"mp4:" + src.read_bytes())
        self.transcoded.append(src)
        return out

    def cleanup(self, output):
        output.unlink()
        self.cleaned.append(output)


@pytest.fixture
def diary_root(tmp_path):
    root = tmp_path / "diary"
    root.mkdir()
    return root


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "source"
    root.mkdir()
    return root


@pytest.fixture
def diary(diary_root):
    """Returns a DiaryIndex over an empty temporary diary."""
    return DiaryIndex(diary_root)


@pytest.fixture
def metadata():
    return FakeMetadata()


@pytest.fixture
def transcoder(tmp_path):
    return FakeTranscoder(tmp_path / "transcoded")


@pytest.fixture
def diary_file(diary_root):
    """Creates <diary>/YYYY/MM/DD/<name> and returns its path."""
    def make(day, name, content=b"diary"):
        path = diary_root / f"{day.year:04}" / f"{day.month:02}" / f"{day.day:02}" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return make


@pytest.fixture
def source_file(source_root):
    """Creates a file under the source tree and returns its path."""
    def make(rel, content=None):
        path = source_root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if content is not None else rel.encode())
        return path
    return make

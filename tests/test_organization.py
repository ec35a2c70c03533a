import pytest
from pathlib import Path
from datetime import date, datetime
from diary_merge.exceptions import DiaryConflictError, FileOperationError, PlanError
from diary_merge.models import (
    DeleteStep, DiaryLocation, ImportStep, Note, Photo, Plan, SkipStep,
    SourceFile, Stats, Video,
)
from diary_merge.organization import rules
from diary_merge.organization.mover import PlanExecutor, describe
from diary_merge.organization.rules import MergePlanner, media_name, plan

DT = datetime(2018, 1, 14, 12, 34, 56)
DAY = DT.date()


def photo(name, dt=DT, capture_id=None, root=Path("/src")):
    stem, ext = name.rsplit(".", 1)
    return SourceFile(root / name, stem, ext, Photo(dt, capture_id))


def video(name, dt=DT, capture_id=None, root=Path("/src")):
    stem, ext = name.rsplit(".", 1)
    return SourceFile(root / name, stem, ext, Video(dt, capture_id))


def note(day=DAY, root=Path("/src")):
    name = f"{day.isoformat()}.org"
    return SourceFile(root / name, day.isoformat(), "org", Note(day))


# --- Naming ---

@pytest.mark.parametrize(
    "stem,capture_id,expected",
    [
        ("IMG_1234", "1234", "12-34-56 1234"),
        ("Screenshot 2018-01-14 at 12.34.56", None, "12-34-56 screenshot"),
        ("Screencast from 2018-01-14", None, "12-34-56 screencast"),
        ("Screen Recording 2018-01-14 at 12.34.56", None, "12-34-56 screencast"),
        ("Recording 12", None, "12-34-56 recording"),
        ("holiday", None, "12-34-56 holiday"),
        # Capture id beats the naming overrides
        ("Screenshot 1", "XYZ", "12-34-56 XYZ"),
    ],
)
def test_media_name(stem, capture_id, expected):
    assert media_name(stem, DT, capture_id) == expected


def test_targets(diary):
    planner = MergePlanner(diary)

    assert planner.target(note()) == DiaryLocation(DAY, "index.org")
    assert planner.target(photo("IMG_1.jpg", capture_id="1")) == DiaryLocation(DAY, "12-34-56 1.jpg")
    assert planner.target(video("clip.mov")) == DiaryLocation(DAY, "12-34-56 clip.mov")


def test_transcoded_videos_target_mp4(diary):
    planner = MergePlanner(diary, transcode_videos=True)
    assert planner.target(video("clip.mov")) == DiaryLocation(DAY, "12-34-56 clip.mp4")
    assert planner.target(photo("a.png")) == DiaryLocation(DAY, "12-34-56 a.png")


# --- Decisions ---

def test_new_files_are_imported(diary):
    files = [note(), photo("a.jpg"), video("b.mov")]

    result = plan(files, diary)

    assert result.steps == [
        ImportStep(Path("/src/2018-01-14.org"), DiaryLocation(DAY, "index.org")),
        ImportStep(Path("/src/a.jpg"), DiaryLocation(DAY, "12-34-56 a.jpg")),
        ImportStep(Path("/src/b.mov"), DiaryLocation(DAY, "12-34-56 b.mov")),
    ]


def test_present_files_are_skipped(diary, diary_file):
    diary_file(DAY, "index.org")
    diary_file(DAY, "12-34-56 a.jpg")

    result = plan([note(), photo("a.jpg")], diary)

    assert result.steps == [
        SkipStep(Path("/src/2018-01-14.org"), rules.REASON_PRESENT),
        SkipStep(Path("/src/a.jpg"), rules.REASON_PRESENT),
    ]


def test_present_files_are_deleted_in_remove_mode(diary, diary_file):
    diary_file(DAY, "index.org")

    result = plan([note()], diary, remove_after_import=True)

    assert result.steps == [DeleteStep(Path("/src/2018-01-14.org"), rules.REASON_PRESENT)]


def test_import_then_delete_in_remove_mode(diary):
    result = plan([note()], diary, remove_after_import=True)

    assert result.steps == [
        ImportStep(Path("/src/2018-01-14.org"), DiaryLocation(DAY, "index.org")),
        DeleteStep(Path("/src/2018-01-14.org"), "just added into the diary"),
    ]


@pytest.mark.parametrize("ext", ["jpg", "png", "heic", "webp"])
def test_video_skipped_when_companion_photo_in_diary(diary, diary_file, ext):
    diary_file(DAY, f"12-34-56 ABCD.{ext}")

    result = plan([video("IMG_ABCD.mov", capture_id="ABCD")], diary)

    assert result.steps == [SkipStep(Path("/src/IMG_ABCD.mov"), "already in the diary as a photo")]


@pytest.mark.parametrize("order", ["photo_first", "video_first"])
def test_video_skipped_when_companion_photo_in_same_run(diary, order):
    files = [photo("IMG_ABCD.heic", capture_id="ABCD"), video("IMG_ABCD.mov", capture_id="ABCD")]
    if order == "video_first":
        files.reverse()

    result = plan(files, diary)

    imports = [s for s in result if isinstance(s, ImportStep)]
    assert [s.src.name for s in imports] == ["IMG_ABCD.heic"]
    assert SkipStep(Path("/src/IMG_ABCD.mov"), rules.REASON_AS_PHOTO) in result.steps


def test_companion_pairing_requires_same_date(diary):
    other_day = datetime(2018, 1, 15, 12, 34, 56)
    files = [photo("IMG_ABCD.heic", dt=other_day, capture_id="ABCD"), video("IMG_ABCD.mov", capture_id="ABCD")]

    result = plan(files, diary)

    assert all(isinstance(s, ImportStep) for s in result)


def test_all_videos_sharing_an_id_are_paired(diary):
    files = [
        photo("IMG_ABCD.jpg", capture_id="ABCD"),
        video("IMG_ABCD.mov", capture_id="ABCD"),
        video("IMG_ABCD.mp4", capture_id="ABCD"),
    ]

    result = plan(files, diary, remove_after_import=True)

    assert DeleteStep(Path("/src/IMG_ABCD.mov"), rules.REASON_AS_PHOTO) in result.steps
    assert DeleteStep(Path("/src/IMG_ABCD.mp4"), rules.REASON_AS_PHOTO) in result.steps


def test_capture_under_different_timestamp(diary, diary_file):
    diary_file(DAY, "09-00-00 ABCD.jpg")

    result = plan([photo("IMG_ABCD.jpg", capture_id="ABCD")], diary)

    assert result.steps == [SkipStep(Path("/src/IMG_ABCD.jpg"), rules.REASON_OTHER_TIMESTAMP)]


def test_video_capture_under_different_timestamp(diary, diary_file):
    diary_file(DAY, "09-00-00 ABCD.mp4")

    result = plan([video("IMG_ABCD.mov", capture_id="ABCD")], diary, remove_after_import=True)

    assert result.steps == [DeleteStep(Path("/src/IMG_ABCD.mov"), rules.REASON_OTHER_TIMESTAMP)]


def test_archived_companion_video_does_not_block_photo(diary, diary_file):
    diary_file(DAY, "12-34-56 ABCD.mov")

    result = plan([photo("IMG_ABCD.heic", capture_id="ABCD")], diary, remove_after_import=True)

    assert result.steps == [
        ImportStep(Path("/src/IMG_ABCD.heic"), DiaryLocation(DAY, "12-34-56 ABCD.heic")),
        DeleteStep(Path("/src/IMG_ABCD.heic"), rules.REASON_JUST_ADDED),
    ]


def test_different_timestamp_match_needs_space_before_id(diary, diary_file):
    diary_file(DAY, "09-00-00 XABCD.jpg")

    result = plan([photo("IMG_ABCD.jpg", capture_id="ABCD")], diary)

    assert isinstance(result.steps[0], ImportStep)


def test_two_sources_with_same_target_import_once(diary):
    files = [photo("a.jpg", root=Path("/src/one")), photo("a.jpg", root=Path("/src/two"))]

    result = plan(files, diary)

    assert result.steps == [
        ImportStep(Path("/src/one/a.jpg"), DiaryLocation(DAY, "12-34-56 a.jpg")),
        SkipStep(Path("/src/two/a.jpg"), rules.REASON_PLANNED),
    ]


def test_transcode_flag_on_video_imports(diary):
    result = plan([video("clip.mov"), photo("a.jpg")], diary, transcode_videos=True)

    assert result.steps[0] == ImportStep(Path("/src/clip.mov"), DiaryLocation(DAY, "12-34-56 clip.mp4"), transcode=True)
    assert result.steps[1].transcode is False


def test_transcoding_skips_video_stored_untranscoded(diary, diary_file):
    diary_file(DAY, "12-34-56 clip.mov")

    result = plan([video("clip.mov")], diary, transcode_videos=True)

    assert result.steps == [SkipStep(Path("/src/clip.mov"), rules.REASON_PRESENT)]


# --- Execution ---

def real_note(source_file, day=DAY, content=b"note"):
    path = source_file(f"{day.isoformat()}.org", content)
    return SourceFile(path, day.isoformat(), "org", Note(day))


def test_execute_imports_and_deletes(diary, diary_root, source_file):
    file = real_note(source_file)
    the_plan = plan([file], diary, remove_after_import=True)

    stats = PlanExecutor(diary).execute(the_plan)

    assert stats == Stats(imported=1, skipped=0, deleted=1)
    assert (diary_root / "2018" / "01" / "14" / "index.org").read_bytes() == b"note"
    assert not file.path.exists()


def test_execute_is_idempotent(diary, source_file):
    files = [real_note(source_file), SourceFile(source_file("a.jpg"), "a", "jpg", Photo(DT))]

    first = PlanExecutor(diary).execute(plan(files, diary))
    second = PlanExecutor(diary).execute(plan(files, diary))

    assert first == Stats(imported=2)
    assert second == Stats(skipped=2)


def test_dry_run_mutates_nothing(diary, diary_root, source_file, caplog):
    file = real_note(source_file)
    the_plan = plan([file], diary, remove_after_import=True)

    with caplog.at_level("INFO"):
        stats = PlanExecutor(diary).execute(the_plan, dry_run=True)

    assert stats == Stats(imported=1, deleted=1)
    assert file.path.exists()
    assert list(diary_root.iterdir()) == []
    assert f"Would import {file.path} to diary:2018/01/14/index.org | 1/2" in caplog.text
    assert f"Would delete {file.path} (just added into the diary) | 2/2" in caplog.text


def test_dry_run_describes_the_same_steps():
    steps = [
        ImportStep(Path("/s/a.jpg"), DiaryLocation(DAY, "x.jpg")),
        SkipStep(Path("/s/b.jpg"), "already in the diary"),
        DeleteStep(Path("/s/c.jpg"), "already in the diary"),
    ]
    for step in steps:
        real = describe(step).split(" ", 1)[1]
        dry = describe(step, dry_run=True).split(" ", 2)[2]
        assert real == dry


def test_execute_collision_is_fatal(diary, diary_file, source_file):
    file = real_note(source_file)
    the_plan = plan([file], diary)
    diary_file(DAY, "index.org")  # Appears between planning and execution

    with pytest.raises(DiaryConflictError):
        PlanExecutor(diary).execute(the_plan)


def test_execute_delete_failure_is_fatal(diary, tmp_path):
    the_plan = Plan([DeleteStep(tmp_path / "vanished.jpg", "already in the diary")])

    with pytest.raises(FileOperationError, match="Couldn't remove"):
        PlanExecutor(diary).execute(the_plan)


def test_execute_transcodes_videos(diary, diary_root, source_file, transcoder):
    path = source_file("clip.mov", b"quicktime")
    files = [SourceFile(path, "clip", "mov", Video(DT))]

    stats = PlanExecutor(diary, transcoder=transcoder).execute(plan(files, diary, transcode_videos=True))

    assert stats.imported == 1
    assert (diary_root / "2018" / "01" / "14" / "12-34-56 clip.mp4").read_bytes() == b"mp4:quicktime"
    assert transcoder.transcoded == [path]
    assert len(transcoder.cleaned) == 1
    assert not transcoder.cleaned[0].exists()


def test_transcode_step_without_transcoder(diary, tmp_path):
    the_plan = Plan([ImportStep(tmp_path / "clip.mov", DiaryLocation(DAY, "x.mp4"), transcode=True)])

    with pytest.raises(PlanError):
        PlanExecutor(diary).execute(the_plan)

"""
Configuration constants for the diary merger.
"""

# --- File Type Definitions ---
# Extensions are stored lower-cased and without the leading dot
NOTE_EXTS = {'org'}
PHOTO_EXTS = {'jpg', 'png', 'webp', 'heic'}
VIDEO_EXTS = {'mov', 'mp4', 'webm'}
MEDIA_EXTS = PHOTO_EXTS | VIDEO_EXTS

# Extension to Kind Mapping
EXT_TO_KIND = {}
for ext in NOTE_EXTS: EXT_TO_KIND[ext] = 'note'
for ext in PHOTO_EXTS: EXT_TO_KIND[ext] = 'photo'
for ext in VIDEO_EXTS: EXT_TO_KIND[ext] = 'video'

# --- Naming ---
NOTE_FILENAME = "index.org"
TIME_FORMAT = "%H-%M-%S"

# Stem prefixes that replace the original stem in the target name.
# Order matters: "Screen Recording" must be tested before "Recording".
NAME_OVERRIDES = [
    ("Screenshot", "screenshot"),
    ("Screencast", "screencast"),
    ("Screen Recording", "screencast"),
    ("Recording", "recording"),
]

# Device-generated prefixes; whatever follows them is the capture id
CAPTURE_ID_PREFIXES = ["IMG_"]

# --- Metadata Parsing ---
# (exiftool tag, value is stored in UTC)
METADATA_TAGS = {
    'photo': ("DateTimeOriginal", False),
    'video': ("MediaCreateDate", True),
}

EXIFREAD_DATE_TAG = 'EXIF DateTimeOriginal'
MEDIAINFO_DATE_FIELDS = ["encoded_date", "tagged_date"]

# Answers meaning "the file has no such tag"
EMPTY_TIMESTAMPS = {"", "-", "0000:00:00 00:00:00"}
# QuickTime stores "no date" as its epoch
QUICKTIME_EPOCH_YEAR = 1904

EXIFTOOL_BIN = "exiftool"

# --- Transcoding ---
FFMPEG_BIN = "ffmpeg"
TRANSCODE_EXT = "mp4"
TRANSCODE_ARGS = ["-c:v", "libx264", "-c:a", "aac"]

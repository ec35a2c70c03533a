"""
Custom exception hierarchy for the diary merger.

Every error raised here is fatal for the run: the app stops at the first
one and leaves already imported or deleted files as they are.
"""


class DiaryMergeError(Exception):
    """Base exception for all diary merger errors."""
    pass


class ScanError(DiaryMergeError):
    """Raised when the source tree cannot be scanned."""
    pass


class IdentityError(DiaryMergeError):
    """Raised when a recognized source file has a malformed name or no usable timestamp."""
    pass


class MetadataExtractionError(DiaryMergeError):
    """Raised when the metadata extractor cannot be run or returns garbage."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class DiaryError(DiaryMergeError):
    """Raised when the diary cannot be read."""
    pass


class DiaryConflictError(DiaryError):
    """Raised when an import would overwrite an existing diary file."""
    pass


class FileOperationError(DiaryMergeError):
    """Raised when file copy/delete operations fail."""
    pass


class TranscodeError(DiaryMergeError):
    """Raised when the video transcoder exits unsuccessfully."""

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr

    def __str__(self):
        parts = [super().__str__()]
        if self.stdout:
            parts.append(f"stdout:\n{self.stdout}")
        if self.stderr:
            parts.append(f"stderr:\n{self.stderr}")
        return "\n".join(parts)


class PlanError(DiaryMergeError):
    """Raised when a plan cannot be executed with the configured collaborators."""
    pass

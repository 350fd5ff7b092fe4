"""
Upload pre-check for settlement workbooks.

Runs before any parsing: the file name must carry an accepted extension and
the file must not exceed the size limit.  ZERO I/O; callers pass the name
and size.
"""

from __future__ import annotations

from settlement_kernel.exceptions import FileRejectedError

from settlement_ingestion.domain.types import MIB, ImportLimits


def _format_megabytes(size: int) -> str:
    mb = size / MIB
    return f"{mb:g}"


def check_upload(filename: str, size: int, limits: ImportLimits) -> None:
    """Reject a file that may not be parsed.

    Raises:
        FileRejectedError: Extension not accepted, or file larger than the
            limit.  The reason is the user-facing message.
    """
    lowered = (filename or "").lower()
    if not any(lowered.endswith(ext) for ext in limits.allowed_extensions):
        allowed = ", ".join(limits.allowed_extensions)
        raise FileRejectedError(filename, f"엑셀 파일({allowed})만 업로드 가능합니다.")

    if size > limits.max_file_bytes:
        raise FileRejectedError(
            filename,
            f"파일 크기는 {_format_megabytes(limits.max_file_bytes)}MB를 초과할 수 없습니다.",
        )

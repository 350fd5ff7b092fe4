"""User-facing messages for record store failures."""

from __future__ import annotations

from settlement_kernel.exceptions import RecordStoreError

PERMISSION_DENIED_MESSAGE = "권한이 거부되었습니다. 데이터베이스 접근 권한을 확인해주세요."
UNAVAILABLE_MESSAGE = "서비스에 일시적으로 연결할 수 없습니다. 잠시 후 다시 시도해주세요."


def describe_store_error(exc: BaseException) -> str:
    """Korean message for a failed store operation.

    Permission and availability failures get fixed messages; anything else
    is reported with its own detail.
    """
    if isinstance(exc, RecordStoreError):
        if exc.reason == "permission-denied":
            return PERMISSION_DENIED_MESSAGE
        if exc.reason == "unavailable":
            return UNAVAILABLE_MESSAGE
        detail = exc.detail
    else:
        detail = str(exc)
    return f"오류가 발생했습니다: {detail or '알 수 없는 오류'}"

"""
Translate service outcomes into HTTP errors.
"""
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status

from nakama_auth.core.errors import ErrorKind

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.POLICY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(
    result,
    overrides: Optional[dict[Enum, int]] = None,
    headers: Optional[dict[str, str]] = None,
) -> None:
    """
    Raise HTTPException for a failed service result; return on success.

    Args:
        result: Any service result exposing `status`, `kind` and `message`
        overrides: Per-status HTTP codes that win over the kind mapping
        headers: Extra response headers for the error
    """
    if result.kind is None:
        return
    code = (overrides or {}).get(result.status, STATUS_BY_KIND[result.kind])
    raise HTTPException(status_code=code, detail=result.message, headers=headers)

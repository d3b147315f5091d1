from __future__ import annotations

from typing import Optional


class BoardError(RuntimeError):
    pass


class BoardConfigError(BoardError):
    """Key, token or board id is missing. Raised before any request is made."""


class BoardAuthError(BoardError):
    pass


class BoardNotFoundError(BoardError):
    pass


class BoardRequestError(BoardError):
    def __init__(self, operation: str, status_code: Optional[int], body: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        super().__init__(f"{operation} failed ({status}): {body}")


class BoardFetchError(BoardError):
    """A reconciliation session could not start because a board fetch failed."""

    def __init__(self, cause: BoardError) -> None:
        self.cause = cause
        super().__init__(f"Board fetch failed: {cause}")

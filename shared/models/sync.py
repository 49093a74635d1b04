from typing import Literal

from pydantic import BaseModel


class BulkSyncResult(BaseModel):
    """
    Aggregate outcome of a bulk synchronisation run.

    success + failed always equals total. A run with total == 0 is reported as failed.
    """
    status: Literal["success", "partial", "failed"]
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[str] = []
    message: str = ""

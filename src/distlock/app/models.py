from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    ok: bool
    data: Any = None
    code: Optional[str] = None
    message: Optional[str] = None


class HealthState(BaseModel):
    ok: bool
    backend: str
    abandoned_workers: int

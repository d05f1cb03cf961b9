from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CronRunResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ok: bool = True
    scanned: int = 0
    sent: int = 0
    failed: int = 0
    suppressed: dict[str, int] = Field(default_factory=dict)

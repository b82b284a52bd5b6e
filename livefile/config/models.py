from typing import Literal

from pydantic import BaseModel, Field


class LiveFileConfig(BaseModel):
    watcher_delay: float = Field(default=0.25, ge=0)
    encoding: str = "utf-8"
    single_flight: bool = False
    read_workers: int = Field(default=2, ge=1)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

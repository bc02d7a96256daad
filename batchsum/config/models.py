import os
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


def default_concurrency() -> int:
    return os.cpu_count() or 1


def coerce_concurrency(value: Optional[int]) -> int:
    """Non-positive limits would starve the pool; clamp them to a single slot."""
    if value is None:
        return default_concurrency()
    return max(1, int(value))


class GeneralConfig(BaseModel):
    concurrency: int = Field(default_factory=default_concurrency)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    debug: bool = False
    log_path: Optional[str] = None
    strict_durability: bool = False
    show_progress: bool = True

    @field_validator("concurrency", mode="before")
    @classmethod
    def clamp_concurrency(cls, v):
        return coerce_concurrency(v)


class NamingConfig(BaseModel):
    """Folder name markers and log artifact names."""
    pending_prefix: str = "r_"
    done_prefix: str = "d_"
    failed_prefix: str = "f_"
    log_name: str = "log.json"
    tmp_log_name: str = "log.tmp"

    @field_validator("pending_prefix", "done_prefix", "failed_prefix", "log_name", "tmp_log_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"must not contain path separators: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_distinct(self):
        prefixes = [self.pending_prefix, self.done_prefix, self.failed_prefix]
        if len(set(prefixes)) != len(prefixes):
            raise ValueError("pending_prefix, done_prefix and failed_prefix must differ")
        if self.log_name == self.tmp_log_name:
            raise ValueError("log_name and tmp_log_name must differ")
        return self


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    input_dir: str = "./input"

"""Resource limits for the import pipeline."""

from pydantic import Field
from pydantic_settings import BaseSettings

MIB = 1024 * 1024


class ImportLimits(BaseSettings):
    """Every bound the pipeline enforces, overridable as MINDWEAVE_IMPORT_<FIELD>."""

    model_config = {"env_prefix": "MINDWEAVE_IMPORT_"}

    max_upload_bytes: int = Field(default=20 * MIB, gt=0)
    parse_timeout_seconds: float = Field(default=30.0, gt=0)
    zip_max_expansion_ratio: float = Field(default=100.0, gt=0)
    zip_max_total_bytes: int = Field(default=200 * MIB, gt=0)
    zip_max_entry_bytes: int = Field(default=20 * MIB, gt=0)
    evernote_max_resource_bytes: int = Field(default=1 * MIB, ge=0)
    deadline_check_interval: int = Field(default=1, ge=1)

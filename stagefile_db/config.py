from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    temp_dir: Optional[str] = None
    copy_chunk_size: int = Field(default=64 * 1024, gt=0)
    check_invariants: bool = False

    model_config = SettingsConfigDict(env_prefix="STAGEFILE_")

settings = Settings()

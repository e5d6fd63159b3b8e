import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel

ENV_PREFIX = "SHIFTDESK_"


class Settings(BaseModel):
    # how long a submitted/error badge stays visible
    status_clear_seconds: float = 2.0
    session_ttl_minutes: int = 480
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {
            name: env[f"{ENV_PREFIX}{name.upper()}"]
            for name in cls.model_fields
            if f"{ENV_PREFIX}{name.upper()}" in env
        }
        return cls.model_validate(values)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

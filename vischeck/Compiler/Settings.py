import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


TRUTHY = ("1", "true", "yes", "on")


class SettingsError(ValueError):
    ...


@dataclass(frozen=True)
class Settings:
    dump_dir: Optional[str] = None
    colour: bool = True
    log_level: Optional[str] = None

    def __post_init__(self):
        # getLevelName maps a registered level name to its number, and anything else to a "Level ..." string.
        if self.log_level is not None and not isinstance(logging.getLevelName(self.log_level), int):
            raise SettingsError(f"Unknown log level '{self.log_level}'. Expected one of DEBUG, INFO, WARNING, ERROR, CRITICAL.")

    @staticmethod
    def from_env() -> "Settings":
        # Values already in the environment win over a .env file.
        load_dotenv()

        log_level = os.getenv("VISCHECK_LOG_LEVEL")
        return Settings(
            dump_dir=os.getenv("VISCHECK_DUMP_DIR") or None,
            colour=os.getenv("VISCHECK_COLOUR", "1").strip().lower() in TRUTHY,
            log_level=log_level.strip().upper() if log_level else None)

    def apply_log_level(self) -> None:
        # Only the package logger, and only when configured; handlers are left to the application.
        if self.log_level:
            logging.getLogger("vischeck").setLevel(self.log_level)

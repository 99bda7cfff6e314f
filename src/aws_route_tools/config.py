"""Retry policy, config file and runtime settings"""

import json
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .core.logging import get_logger

logger = get_logger("config")

CONFIG_DIR = Path.home() / ".config" / "aws-route-tools"
CONFIG_FILE = CONFIG_DIR / "config.json"
OUTPUT_FORMATS = ("table", "json", "yaml")


def parse_duration(value: str) -> float:
    """Parse duration string like '30s', '5m', '1h' to seconds"""
    match = re.match(r"^(\d+(?:\.\d+)?)([smh]?)$", value.strip().lower())
    if not match:
        raise ValueError(
            f"Invalid duration format: {value}. Use number with optional s/m/h suffix"
        )
    num = float(match.group(1))
    unit = match.group(2) or "s"
    multipliers = {"s": 1, "m": 60, "h": 3600}
    return num * multipliers[unit]


class RetryPolicy(BaseModel):
    """Bounded exponential backoff for remote calls and post-write polling."""

    max_attempts: int = Field(default=4, ge=1, description="Attempts per remote call")
    base_delay: float = Field(default=1.0, ge=0, description="First backoff delay")
    max_delay: float = Field(default=20.0, ge=0, description="Backoff ceiling")
    poll_timeout: float = Field(
        default=120.0, ge=0, description="Budget for a write to become visible"
    )

    def delay(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    @classmethod
    def immediate(cls, max_attempts: int = 4, poll_timeout: float = 0.0) -> "RetryPolicy":
        """Zero-wait policy for tests and dry runs."""
        return cls(
            max_attempts=max_attempts,
            base_delay=0.0,
            max_delay=0.0,
            poll_timeout=poll_timeout,
        )


def _read_config(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}


def load_retry_policy(path: Optional[Path] = None) -> RetryPolicy:
    """Load the retry policy from config or use defaults"""
    config = _read_config(path or CONFIG_FILE)
    try:
        return RetryPolicy(**config.get("retry", {}))
    except ValidationError as e:
        logger.warning("Invalid retry settings, using defaults: %s", e)
        return RetryPolicy()


def save_retry_policy(policy: RetryPolicy, path: Optional[Path] = None) -> None:
    """Persist the retry policy, keeping other config sections"""
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    config = _read_config(path)
    config["retry"] = policy.model_dump()
    path.write_text(json.dumps(config, indent=2))


class RuntimeConfig:
    """Process-wide CLI settings (profile, region, output format)."""

    _instance: Optional["RuntimeConfig"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._defaults()
        return cls._instance

    def _defaults(self):
        self.profile: Optional[str] = None
        self.region: Optional[str] = None
        self.output_format: str = "table"
        self.debug: bool = False

    @classmethod
    def reset(cls) -> None:
        cls()._defaults()

    @classmethod
    def set_profile(cls, profile: Optional[str]) -> None:
        cls().profile = profile

    @classmethod
    def get_profile(cls) -> Optional[str]:
        return cls().profile

    @classmethod
    def set_region(cls, region: Optional[str]) -> None:
        cls().region = region

    @classmethod
    def get_region(cls) -> Optional[str]:
        return cls().region

    @classmethod
    def set_output_format(cls, fmt: str) -> None:
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(
                f"Invalid format: {fmt}. Use one of {', '.join(OUTPUT_FORMATS)}"
            )
        cls().output_format = fmt

    @classmethod
    def get_output_format(cls) -> str:
        return cls().output_format

    @classmethod
    def set_debug(cls, debug: bool) -> None:
        cls().debug = debug

    @classmethod
    def is_debug(cls) -> bool:
        return cls().debug

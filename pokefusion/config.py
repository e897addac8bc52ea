"""Service configuration read from the environment."""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, field
from typing import Tuple

PACKAGE_DIR = pathlib.Path(os.path.dirname(__file__))
DEFAULT_DATA_DIR = PACKAGE_DIR / "data"


def _path(name: str, default: pathlib.Path) -> pathlib.Path:
    value = os.getenv(name)
    return pathlib.Path(value) if value else default


def _origins(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ("*",)
    return tuple(o.strip() for o in raw.split(",") if o.strip()) or ("*",)


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    data_dir: pathlib.Path = DEFAULT_DATA_DIR
    roster_path: pathlib.Path = DEFAULT_DATA_DIR / "fusiondex_data.json"
    custom_entries_path: pathlib.Path = DEFAULT_DATA_DIR / "custom_entries.json"
    sprites_dir: pathlib.Path = DEFAULT_DATA_DIR / "sprites"
    assets_dir: pathlib.Path = DEFAULT_DATA_DIR / "assets"
    allowed_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    rate_limit_window: float = 60.0
    rate_limit_max: int = 10
    max_url_length: int = 2048
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def custom_sprites_dir(self) -> pathlib.Path:
        return self.sprites_dir / "custom"

    @property
    def autogen_sprites_dir(self) -> pathlib.Path:
        return self.sprites_dir / "autogen"

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = _path("POKEFUSION_DATA_DIR", DEFAULT_DATA_DIR)
        rate_limit_max = int(os.getenv("POKEFUSION_RATE_LIMIT_MAX", "10"))
        rate_limit_window = float(os.getenv("POKEFUSION_RATE_LIMIT_WINDOW", "60"))
        max_url_length = int(os.getenv("POKEFUSION_MAX_URL_LENGTH", "2048"))
        return cls(
            environment=os.getenv("POKEFUSION_ENV", "development"),
            host=os.getenv("POKEFUSION_HOST", "0.0.0.0"),
            port=int(os.getenv("POKEFUSION_PORT", "3000")),
            data_dir=data_dir,
            roster_path=_path("POKEFUSION_ROSTER_PATH", data_dir / "fusiondex_data.json"),
            custom_entries_path=_path("POKEFUSION_CUSTOM_ENTRIES_PATH", data_dir / "custom_entries.json"),
            sprites_dir=_path("POKEFUSION_SPRITES_DIR", data_dir / "sprites"),
            assets_dir=_path("POKEFUSION_ASSETS_DIR", data_dir / "assets"),
            allowed_origins=_origins(os.getenv("POKEFUSION_ALLOWED_ORIGINS")),
            rate_limit_window=max(1.0, rate_limit_window),
            rate_limit_max=max(0, rate_limit_max),
            max_url_length=max(1, max_url_length),
            log_level=os.getenv("POKEFUSION_LOG_LEVEL", "INFO").upper(),
        )


__all__ = ["Settings", "DEFAULT_DATA_DIR"]

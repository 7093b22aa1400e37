from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .blocks import STATE_RE
from .pathing import DEFAULT_PATH_BLOCK
from .trace import RAINBOW_PALETTE

DEFAULT_SEED_BLOCK = "minecraft:blue_wool"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _check_block_id(value: str) -> str:
    if not STATE_RE.match(value):
        raise ValueError(f"block ids must look like namespace:name[prop=value], got {value!r}")
    return value


class OptimizeSettings(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    seed_block: str = DEFAULT_SEED_BLOCK
    inside_block: Optional[str] = None
    rainbow: bool = False
    # The default seed marker must be passable for the flood to start on it.
    passable_blocks: list[str] = Field(default_factory=lambda: [DEFAULT_SEED_BLOCK])
    default_passable: bool = True
    margin: int = Field(default=1, ge=0, le=16)
    path_block: str = DEFAULT_PATH_BLOCK
    palette: list[str] = Field(default_factory=lambda: list(RAINBOW_PALETTE), min_length=1)
    trace_key: Literal["index", "depth"] = "index"

    @field_validator("seed_block", "path_block")
    @classmethod
    def validate_block(cls, value: str) -> str:
        return _check_block_id(value)

    @field_validator("inside_block")
    @classmethod
    def validate_inside(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        return _check_block_id(value)

    @field_validator("passable_blocks", "palette")
    @classmethod
    def validate_block_list(cls, value: list[str]) -> list[str]:
        return [_check_block_id(v.strip()) for v in value if v.strip()]

    @model_validator(mode="after")
    def check_modes(self) -> "OptimizeSettings":
        if self.rainbow and self.inside_block:
            raise ValueError("rainbow and inside modes are mutually exclusive")
        if self.inside_block and self.inside_block == self.seed_block:
            raise ValueError("inside marker must differ from the seed block")
        return self

    @property
    def mode(self) -> str:
        if self.rainbow:
            return "rainbow"
        if self.inside_block:
            return "inside"
        return "prune"

    @classmethod
    def env_overrides(cls, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if environ is None else environ
        out: Dict[str, Any] = {}
        raw = env.get("SCHEMOPT_PASSABLE_BLOCKS", "").strip()
        if raw:
            # Extends the default list rather than replacing it.
            extra = [p for p in raw.replace(";", ",").split(",") if p.strip()]
            out["passable_blocks"] = [DEFAULT_SEED_BLOCK, *extra]
        margin = env.get("SCHEMOPT_MARGIN", "").strip()
        if margin:
            out["margin"] = margin
        return out

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "OptimizeSettings":
        """Defaults < environment < JSON config file < explicit overrides."""
        data: Dict[str, Any] = cls.env_overrides(environ)
        if config_path is not None:
            loaded = json.loads(config_path.read_text(encoding="utf-8"))
            if not isinstance(loaded, dict):
                raise ValueError(f"{config_path}: config must be a JSON object")
            data.update(loaded)
        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value
        return cls.model_validate(data)


@dataclass(frozen=True)
class LogSettings:
    level: str

    @classmethod
    def from_env(cls, verbose: bool = False) -> "LogSettings":
        if verbose:
            return cls(level="DEBUG")
        level = os.getenv("SCHEMOPT_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
        return cls(level=level)


def configure_logging(settings: LogSettings) -> None:
    logging.basicConfig(level=settings.level, format=LOG_FORMAT)

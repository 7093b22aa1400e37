from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from schemopt.settings import LogSettings, OptimizeSettings
from schemopt.trace import RAINBOW_PALETTE


def test_defaults():
    settings = OptimizeSettings()

    assert settings.seed_block == "minecraft:blue_wool"
    assert settings.margin == 1
    assert settings.passable_blocks == ["minecraft:blue_wool"]
    assert settings.mode == "prune"
    assert settings.palette == list(RAINBOW_PALETTE)


def test_modes():
    assert OptimizeSettings(rainbow=True).mode == "rainbow"
    assert OptimizeSettings(inside_block="minecraft:gold_block").mode == "inside"
    assert OptimizeSettings(inside_block="").mode == "prune"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"seed_block": "blue_wool"},
        {"passable_blocks": ["minecraft:glass", "Glass"]},
        {"rainbow": True, "inside_block": "minecraft:gold_block"},
        {"inside_block": "minecraft:blue_wool"},
        {"margin": -1},
        {"palette": []},
        {"trace_key": "distance"},
        {"colour": "red"},
    ],
)
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        OptimizeSettings(**kwargs)


def test_whitespace_is_stripped():
    settings = OptimizeSettings(seed_block="  minecraft:red_wool ", passable_blocks=[" minecraft:glass ", " "])

    assert settings.seed_block == "minecraft:red_wool"
    assert settings.passable_blocks == ["minecraft:glass"]


def test_environment_values_are_read():
    settings = OptimizeSettings.load(
        environ={"SCHEMOPT_PASSABLE_BLOCKS": "minecraft:barrel; minecraft:chest", "SCHEMOPT_MARGIN": "0"}
    )

    assert settings.passable_blocks == ["minecraft:blue_wool", "minecraft:barrel", "minecraft:chest"]
    assert settings.margin == 0


def test_config_file_beats_environment_and_overrides_beat_both(tmp_path: Path):
    config = tmp_path / "schemopt.json"
    config.write_text(json.dumps({"margin": 2, "seed_block": "minecraft:red_wool"}), encoding="utf-8")

    settings = OptimizeSettings.load(
        config_path=config,
        overrides={"seed_block": "minecraft:lime_wool", "rainbow": None},
        environ={"SCHEMOPT_MARGIN": "3"},
    )

    assert settings.margin == 2
    assert settings.seed_block == "minecraft:lime_wool"
    assert settings.rainbow is False


def test_config_must_be_an_object(tmp_path: Path):
    config = tmp_path / "schemopt.json"
    config.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        OptimizeSettings.load(config_path=config, environ={})


def test_log_settings_from_env(monkeypatch: pytest.MonkeyPatch):
    assert LogSettings.from_env().level == "WARNING"
    assert LogSettings.from_env(verbose=True).level == "DEBUG"
    monkeypatch.setenv("SCHEMOPT_LOG_LEVEL", "info")
    assert LogSettings.from_env().level == "INFO"
    assert logging.getLevelName(LogSettings.from_env().level) == logging.INFO

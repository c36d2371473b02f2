# tests/test_config.py
from __future__ import annotations

import os

import pytest

from astrocusp.core.houses import EQUAL_OFFSET, PLACIDUS_EXACT
from astrocusp.utils.config import EngineConfig, load_config


def _write(tmp_path, text: str) -> str:
    p = tmp_path / "cfg.yaml"
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_defaults_when_file_missing(tmp_path) -> None:
    cfg = load_config(str(tmp_path / "nope.yaml"), env={})
    assert cfg == EngineConfig()
    assert cfg.house_mode == EQUAL_OFFSET
    assert cfg.polar_epsilon_deg == pytest.approx(0.001)
    assert cfg.placidus_max_iterations == 50
    assert cfg.projected_mc is False


def test_shipped_defaults_file() -> None:
    cfg = load_config(os.path.join(os.path.dirname(__file__), "..", "config", "defaults.yaml"), env={})
    assert cfg == EngineConfig()


def test_yaml_values(tmp_path) -> None:
    path = _write(tmp_path, "house_mode: placidus\nplacidus_max_iterations: 80\ninclude_sun: false\n")
    cfg = load_config(path, env={})
    assert cfg.house_mode == PLACIDUS_EXACT
    assert cfg.placidus_max_iterations == 80
    assert cfg.include_sun is False


def test_env_overrides_yaml(tmp_path) -> None:
    path = _write(tmp_path, "house_mode: placidus_exact\nobliquity_mode: reference\n")
    cfg = load_config(path, env={
        "ASTROCUSP_HOUSE_MODE": "equal_offset",
        "ASTROCUSP_OBLIQUITY_MODE": "true",
        "ASTROCUSP_PLACIDUS_TOL": "1e-10",
        "ASTROCUSP_POLAR_EPSILON": "0.5",
        "ASTROCUSP_INCLUDE_SUN": "off",
        "ASTROCUSP_PROJECTED_MC": "yes",
    })
    assert cfg.house_mode == EQUAL_OFFSET
    assert cfg.obliquity_mode == "true"
    assert cfg.placidus_tolerance_rad == pytest.approx(1e-10)
    assert cfg.polar_epsilon_deg == pytest.approx(0.5)
    assert cfg.include_sun is False
    assert cfg.projected_mc is True


def test_config_path_from_env(tmp_path) -> None:
    path = _write(tmp_path, "placidus_max_iterations: 7\n")
    cfg = load_config(env={"ASTROCUSP_CONFIG": path})
    assert cfg.placidus_max_iterations == 7


@pytest.mark.parametrize("text", [
    "house_mode: koch\n",
    "obliquity_mode: apparent\n",
    "placidus_max_iterations: 0\n",
    "placidus_tolerance_rad: -1\n",
    "polar_epsilon_deg: 95\n",
    "include_sun: maybe\n",
    "projected_mc: sometimes\n",
    "unknown_key: 1\n",
    "- just\n- a list\n",
    "house_mode: [unclosed\n",
])
def test_invalid_config_rejected(tmp_path, text: str) -> None:
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, text), env={})


def test_invalid_env_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "nope.yaml"), env={"ASTROCUSP_PLACIDUS_MAX_ITERS": "many"})

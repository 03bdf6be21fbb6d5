import logging

import pytest

from smashspeed.pipeline.session import SessionConfig
from smashspeed.utils.config import load_yaml, resolve_path, section
from smashspeed.utils.logging import setup_logging


def test_load_yaml_and_sections(tmp_path) -> None:
    p = tmp_path / "analysis.yaml"
    p.write_text(
        "model:\n  input_size: 640\nspeed:\n  max_dt_s: 0.4\n  smoothing:\n    method: kalman\noutput:\n",
        encoding="utf-8",
    )
    cfg = load_yaml(str(p))
    assert section(cfg, "output") == {}
    assert section(cfg, "missing") == {}
    sc = SessionConfig.from_dict(cfg)
    assert sc.speed.max_dt_s == 0.4
    assert sc.speed.smoothing_method == "kalman"


def test_load_yaml_rejects_non_mapping(tmp_path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(str(p))
    with pytest.raises(ValueError):
        section({"speed": [1, 2]}, "speed")


def test_resolve_path(tmp_path) -> None:
    assert resolve_path("configs/a.yaml", str(tmp_path)) == str((tmp_path / "configs" / "a.yaml").resolve())
    assert resolve_path(str(tmp_path / "x"), "/elsewhere") == str(tmp_path / "x")


def test_setup_logging_quiets_detector_library() -> None:
    setup_logging(level="DEBUG", quiet=("ultralytics",))
    assert logging.getLogger("ultralytics").level == logging.WARNING

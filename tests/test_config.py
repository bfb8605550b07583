import json

import pytest

from partogram_canvas import config
from partogram_canvas.config import AppSettings, load_config, save_config


@pytest.fixture
def cfg_path(tmp_path, monkeypatch):
    path = tmp_path / "partogram_config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", path)
    return path


def test_missing_file_gives_defaults(cfg_path):
    assert load_config() == AppSettings()


def test_save_and_load(cfg_path):
    s = AppSettings(store_path="/data/p.json", background_image="sheet.png", default_tool="station",
                    log_level="DEBUG", fit_sheet=False)
    save_config(s)
    assert json.loads(cfg_path.read_text(encoding="utf-8"))["default_tool"] == "station"
    assert load_config() == s


def test_partial_file_merges_with_defaults(cfg_path):
    cfg_path.write_text(json.dumps({"log_level": "WARNING", "unknown": 1}), encoding="utf-8")
    s = load_config()
    assert s.log_level == "WARNING"
    assert s.default_tool == AppSettings().default_tool


@pytest.mark.parametrize("content", ["{broken", "[1, 2]", '"text"'])
def test_corrupt_file_falls_back(cfg_path, content):
    cfg_path.write_text(content, encoding="utf-8")
    assert load_config() == AppSettings()

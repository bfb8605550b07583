from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

CONFIG_PATH = Path.home() / ".partogram_config.json"


@dataclass
class AppSettings:
    store_path: str = str(Path.home() / "partogram_patients.json")
    background_image: str = ""          # blank = drawn grid sheet
    default_tool: str = "dilation"
    log_level: str = "INFO"
    fit_sheet: bool = True              # scale the sheet to the window


def load_config() -> AppSettings:
    settings = AppSettings()
    if not CONFIG_PATH.exists():
        return settings

    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return settings
        known = {k: v for k, v in data.items() if k in asdict(settings)}
        settings = AppSettings(**{**asdict(settings), **known})
    except Exception:
        # If config is corrupt, fall back without blocking app usage.
        return AppSettings()

    return settings


def save_config(settings: AppSettings) -> None:
    CONFIG_PATH.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Dict, Optional

CONFIG_PATH = Path.home() / ".pngme.json"

ENV_MAPPING: Dict[str, str] = {
    "lenient_types": "PNGME_LENIENT",
    "record_history": "PNGME_HISTORY",
    "verify_output": "PNGME_VERIFY",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class PngmeConfig:
    lenient_types: bool = True
    record_history: bool = True
    verify_output: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "PngmeConfig":
        cfg = cls()
        for f in fields(cls):
            value = data.get(f.name)
            if isinstance(value, bool):
                setattr(cfg, f.name, value)
        return cfg


def parse_flag(value: str) -> Optional[bool]:
    """Interpret an environment flag; returns None for anything unrecognised."""
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _merge_env(cfg: PngmeConfig) -> PngmeConfig:
    for field_name, env_var in ENV_MAPPING.items():
        flag = parse_flag(os.getenv(env_var, ""))
        if flag is not None:
            setattr(cfg, field_name, flag)
    return cfg


def load_config(path: Path = CONFIG_PATH, apply_env: bool = True) -> PngmeConfig:
    """
    Read the config file. With ``apply_env`` the PNGME_* variables are laid
    over the file values; pass False to get exactly what is stored.
    """
    config = PngmeConfig()
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            # Unreadable or malformed file: keep defaults.
            data = None
        if isinstance(data, dict):
            config = PngmeConfig.from_dict(data)
    return _merge_env(config) if apply_env else config


def save_config(config: PngmeConfig, path: Path = CONFIG_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")

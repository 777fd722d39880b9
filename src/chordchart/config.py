# src/chordchart/config.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
import copy
import logging
import yaml

log = logging.getLogger(__name__)

PKG_ROOT = Path(__file__).resolve().parent
DEFAULT_CFG_PATH = PKG_ROOT / "config.default.yaml"
USER_CFG_PATH = Path.home() / ".config" / "chordchart" / "config.yaml"

BARS_PER_ROW_CHOICES = (4, 8)

def _safe_load(path: Path) -> Dict[str, Any]:
    try:
        if path.exists():
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        # an unreadable config must not take the editor down
        log.warning("ignoring config %s: %s", path, e)
    return {}

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out

def load_config(
    user_path: Optional[Path] = None,
    default_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Packaged defaults merged with the user's overrides. Missing keys are
    filled in so the accessors below always find something.
    """
    dpath = Path(default_path) if default_path else DEFAULT_CFG_PATH
    upath = Path(user_path) if user_path else USER_CFG_PATH

    cfg = _deep_merge(_safe_load(dpath), _safe_load(upath))

    cfg.setdefault("beats_per_bar", 4)
    cfg.setdefault("fallback_bpm", 120.0)
    cfg.setdefault("default_key", "C")
    cfg.setdefault("bars_per_row", 8)
    cfg.setdefault("multiple_of_beats_per_bar", True)
    return cfg

def get_beats_per_bar(cfg: Dict[str, Any]) -> int:
    try:
        v = int(cfg.get("beats_per_bar", 4))
    except (TypeError, ValueError):
        return 4
    return v if v > 0 else 4

def get_fallback_bpm(cfg: Dict[str, Any]) -> float:
    try:
        v = float(cfg.get("fallback_bpm", 120.0))
    except (TypeError, ValueError):
        return 120.0
    return v if v > 0 else 120.0

def get_default_key(cfg: Dict[str, Any]) -> str:
    v = cfg.get("default_key")
    return str(v).strip() if v and str(v).strip() else "C"

def get_bars_per_row(cfg: Dict[str, Any]) -> int:
    try:
        v = int(cfg.get("bars_per_row", 8))
    except (TypeError, ValueError):
        return 8
    return v if v in BARS_PER_ROW_CHOICES else 8

def pad_to_beats_per_bar(cfg: Dict[str, Any]) -> bool:
    return bool(cfg.get("multiple_of_beats_per_bar", True))

# packed_voting/config.py
import logging
import os
from typing import Any, Dict

import yaml

log = logging.getLogger(__name__)

CONFIG_FILENAME = "voting_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "registry": {
        # packed | normal | ballot_log (or PackedVoting | NormalVoting | BadVoting)
        "backend": "packed",
        # Account allowed to set voting power. Empty -> "root".
        "owner": "",
        "enforce_vote_window": True,
    },
    "persistence": {
        # memory | json
        "driver": "memory",
        "data_dir": "data",
        "filename": "voting_state.json",
        "keep_backups": 2,
    },
    "logging": {"level": "INFO"},
    "server": {"host": "127.0.0.1", "port": 8000},
}

DEFAULT_OWNER = "root"


def _bool(raw: str) -> bool:
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


_ENV_MAP = {
    ("registry", "backend"): ("VOTING_BACKEND", str),
    ("registry", "owner"): ("VOTING_OWNER", str),
    ("registry", "enforce_vote_window"): ("VOTING_ENFORCE_WINDOW", _bool),
    ("persistence", "driver"): ("VOTING_PERSISTENCE", str),
    ("persistence", "data_dir"): ("VOTING_DATA_DIR", str),
    ("logging", "level"): ("VOTING_LOG_LEVEL", str),
    ("server", "host"): ("VOTING_HOST", str),
    ("server", "port"): ("VOTING_PORT", int),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("ignoring %s=%r: not a valid %s", env_name, val, cast.__name__)
            continue
        cfg[section] = dict(cfg.get(section) or {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads repo_root/voting_config.yaml over the defaults, then applies ENV
    overrides. A missing file means defaults; an unparsable one is logged
    and ignored.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = _deep_merge(_DEFAULT, {})

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            log.warning("could not read %s; using defaults", path, exc_info=True)
            data = {}
        if isinstance(data, dict):
            cfg = _deep_merge(cfg, data)
        else:
            log.warning("%s does not hold a mapping; using defaults", path)

    return _apply_env_overrides(cfg)


# -------- Small helpers used by the app --------
def get_backend(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("registry", {}).get("backend") or "packed")


def get_owner(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("registry", {}).get("owner") or DEFAULT_OWNER)


def get_enforce_vote_window(cfg: Dict[str, Any]) -> bool:
    value = cfg.get("registry", {}).get("enforce_vote_window", True)
    # Quoted YAML values ("false", "off") arrive as strings.
    return _bool(value) if isinstance(value, str) else bool(value)


def get_persistence_driver(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("driver") or "memory").lower()


def get_data_dir(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("data_dir") or "data")


def get_state_filename(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("filename") or "voting_state.json")


def get_keep_backups(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("persistence", {}).get("keep_backups", 2))


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level") or "INFO").upper()


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))

# qvote_node/config.py
import logging
import os
from typing import Any, Dict, List

import yaml

from .qvote_runtime.election import ElectionSettings

log = logging.getLogger(__name__)

CONFIG_FILENAME = "qvote_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "election": {
        "max_credits": 100,
        "max_votes_per_cast": 10,
        "lock_timeout_seconds": 2.0,
        # keep the final tally queryable after the election returns to idle
        "retain_last_tally": True,
        "winners_shown": 5,
    },
    "communities": {
        # empty list = any community id is accepted
        "approved": [],
    },
    "permissions": {
        # role a member needs to start/stop elections
        "admin_role": "voting",
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "0.0.0.0",
        "port": 8000,
    },
}


def _csv(val: str) -> List[str]:
    return [x.strip() for x in str(val).split(",") if x.strip()]


# -------- ENV overrides --------
_ENV_MAP = {
    ("election", "max_credits"): ("QVOTE_MAX_CREDITS", int),
    ("election", "max_votes_per_cast"): ("QVOTE_MAX_VOTES_PER_CAST", int),
    ("election", "lock_timeout_seconds"): ("QVOTE_LOCK_TIMEOUT", float),
    ("communities", "approved"): ("QVOTE_APPROVED_COMMUNITIES", _csv),
    ("permissions", "admin_role"): ("QVOTE_ADMIN_ROLE", str),
    ("logging", "level"): ("QVOTE_LOG_LEVEL", str),
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
            log.warning("ignoring %s=%r: not a valid %s", env_name, val, getattr(cast, "__name__", "value"))
            continue
        cfg[section] = dict(cfg.get(section) or {})
        cfg[section][key] = casted
    return cfg


def default_config() -> Dict[str, Any]:
    return _deep_merge({}, _DEFAULT)


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/qvote_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Also applies ENV overrides for selected keys.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = default_config()

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            log.warning("could not read %s, using defaults: %s", path, exc)
            data = {}
        if isinstance(data, dict):
            cfg = _deep_merge(cfg, data)
        else:
            log.warning("%s must contain a mapping, using defaults", path)

    cfg = _apply_env_overrides(cfg)

    # Normalize approved communities to a list of strings
    approved = cfg.get("communities", {}).get("approved")
    if isinstance(approved, str):
        approved = _csv(approved)
    cfg["communities"]["approved"] = [str(x) for x in (approved or [])]

    return cfg


# -------- Small helpers used by the app --------
def election_settings(cfg: Dict[str, Any]) -> ElectionSettings:
    """Raises ValueError on non-positive credit or vote limits."""
    sect = cfg.get("election", {}) or {}
    timeout = sect.get("lock_timeout_seconds", 2.0)
    return ElectionSettings(
        max_credits=int(sect.get("max_credits", 100)),
        max_votes_per_cast=int(sect.get("max_votes_per_cast", 10)),
        lock_timeout_seconds=None if timeout is None else float(timeout),
        retain_last_tally=bool(sect.get("retain_last_tally", True)),
        winners_shown=int(sect.get("winners_shown", 5)),
    )


def get_approved_communities(cfg: Dict[str, Any]) -> List[str]:
    return list(cfg.get("communities", {}).get("approved", []))


def get_admin_role(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("permissions", {}).get("admin_role", "voting"))


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "0.0.0.0"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def configure_logging(cfg: Dict[str, Any]) -> None:
    name = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    level = getattr(logging, name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    # basicConfig is a no-op once handlers exist; the configured level still wins
    logging.getLogger().setLevel(level)

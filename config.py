"""
Saved runs. Each run is configs/{seed}_{name}.json holding the model and viewer settings,
optionally with configs/{seed}_{name}.npz holding the U/V fields and the step they were taken at.
configs/last.txt names the most recently saved run; it is loaded when no config is given.
"""

import json
import logging
import re
from pathlib import Path

import numpy as np

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
LAST_FILE = CONFIG_DIR / "last.txt"

MODEL_KEYS = ("dt", "dx", "feed", "kill", "du", "dv")
VIEWER_KEYS = ("seed", "lock_seed", "actual_seed_used", "backend", "steps_per_frame", "palette", "step_count")

logger = logging.getLogger(__name__)

# (seed, name) of every run on disk, kept in sync by refresh_index/save_config/delete_config.
_CONFIG_INDEX: set[tuple[int, str]] = set()


def parse_config_id(text: str) -> tuple[int, str] | None:
    """'{seed}_{name}' -> (seed, name); None if text is not a run id."""
    seed, sep, name = text.strip().partition("_")
    if not sep or not name:
        return None
    try:
        return int(seed), name
    except ValueError:
        return None


def refresh_index() -> None:
    global _CONFIG_INDEX
    found = (parse_config_id(f.stem) for f in CONFIG_DIR.glob("*.json")) if CONFIG_DIR.exists() else ()
    _CONFIG_INDEX = {key for key in found if key is not None}


def _sanitize_name(name: str) -> str:
    s = re.sub(r"[^\w\s-]", "", (name or "").strip())
    s = re.sub(r"[\s-]+", "_", s).strip("_")
    return s[:64] or "unnamed"


def config_id(seed: int, name: str) -> str:
    return f"{seed}_{_sanitize_name(name)}"


def get_config_path(seed: int, name: str) -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR / f"{config_id(seed, name)}.json"


def get_state_path(seed: int, name: str) -> Path:
    return CONFIG_DIR / f"{config_id(seed, name)}.npz"


def list_configs() -> list[tuple[int, str]]:
    """Saved runs ordered by name, then seed."""
    return sorted(_CONFIG_INDEX, key=lambda key: (key[1].lower(), key[0]))


def config_exists(seed: int, name: str) -> bool:
    return (seed, _sanitize_name(name)) in _CONFIG_INDEX


def get_last_config() -> tuple[int, str] | None:
    try:
        return parse_config_id(LAST_FILE.read_text())
    except OSError:
        return None


def set_last_config(seed: int, name: str) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LAST_FILE.write_text(config_id(seed, name))


def load_config(path: Path | str | None = None) -> dict:
    """Settings from path (or the last saved run) over the defaults. A missing file gives the defaults."""
    if path is None:
        last = get_last_config()
        path = get_config_path(*last) if last else None
    if path is None or not Path(path).exists():
        return _default_config()
    with open(path, "r") as f:
        return _merge_defaults(json.load(f))


def save_config(
    params: dict,
    actual_seed: int,
    name: str,
    step_count: int = 0,
    state: dict | None = None,
) -> Path:
    """
    Write the run settings, and the fields when state ({'u', 'v', 'step_count'}, see
    SimulationState.snapshot) is given. The file is keyed by the seed the fields were generated
    with, not the configured one, so a -1 seed can be replayed. Becomes the last run.
    """
    path = get_config_path(actual_seed, name)
    with open(path, "w") as f:
        json.dump({**params, "actual_seed_used": actual_seed, "step_count": step_count}, f, indent=2)
    if state is not None:
        np.savez_compressed(
            get_state_path(actual_seed, name),
            u=state["u"],
            v=state["v"],
            step_count=np.int64(state["step_count"]),
        )
    set_last_config(actual_seed, name)
    _CONFIG_INDEX.add((actual_seed, _sanitize_name(name)))
    return path


def load_state(seed: int, name: str) -> dict | None:
    """Saved fields of a run as {'u', 'v', 'step_count'}; None if there are none or the file is unreadable."""
    path = get_state_path(seed, name)
    if not path.exists():
        return None
    try:
        with np.load(path, allow_pickle=False) as data:
            return {"u": data["u"].copy(), "v": data["v"].copy(), "step_count": int(data["step_count"])}
    except (KeyError, OSError, ValueError) as e:
        logger.warning("Ignoring unreadable fields in %s: %s", path, e)
        return None


def delete_config(seed: int, name: str) -> None:
    """Remove a run's settings and fields. Forgets it as the last run if it was."""
    key = (seed, _sanitize_name(name))
    _CONFIG_INDEX.discard(key)
    get_config_path(seed, name).unlink(missing_ok=True)
    get_state_path(seed, name).unlink(missing_ok=True)
    if get_last_config() == key:
        LAST_FILE.unlink(missing_ok=True)


def _default_config() -> dict:
    return {
        "world": {"width": 256, "height": 256},
        "feed": 0.012,
        "kill": 0.052,
        "dt": 0.5,
        "dx": 2.0,
        "seed": -1,
        "lock_seed": False,
        "backend": "numpy",
        "steps_per_frame": 4,
        "palette": "ocean",
        "step_count": 0,
    }


def _merge_defaults(data: dict) -> dict:
    merged = _default_config()
    merged["world"].update(data.get("world", {}))
    merged.update({k: data[k] for k in MODEL_KEYS + VIEWER_KEYS if k in data})
    return merged


def param_overrides(cfg: dict) -> dict:
    """Model parameters of a config, as SimulationState keyword arguments."""
    return {k: cfg[k] for k in MODEL_KEYS if k in cfg}

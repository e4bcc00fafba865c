from pathlib import Path

import yaml

from decpac.constants import STATE_FILE
from decpac.errors import ConfigError


def load_state(path: Path = STATE_FILE) -> dict:
    """Load current state."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            state = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f'Invalid state file {path}: {e}') from e
    if state is None:
        return {}
    if not isinstance(state, dict):
        raise ConfigError(f'Invalid state file {path}: expected a mapping')
    return state


def save_state(state: dict, path: Path = STATE_FILE):
    """Save state."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.safe_dump(state, f, sort_keys=False, default_flow_style=False)


def is_initialized(path: Path = STATE_FILE) -> bool:
    return bool(load_state(path).get('initialized'))


def mark_initialized(path: Path = STATE_FILE):
    state = load_state(path)
    state['initialized'] = True
    save_state(state, path)

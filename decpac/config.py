from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from decpac.constants import MANIFEST_FILE, SETTINGS_FILE, STATE_FILE
from decpac.errors import ConfigError

# key -> expected value type
SETTINGS_TYPES = {
    'manifest': str,
    'pacman': str,
    'aur_helper': str,
    'color': bool,
}


@dataclass
class Settings:
    """Effective configuration for one run."""

    manifest: Path = MANIFEST_FILE
    pacman: str = 'pacman'
    aur_helper: str = 'yay'
    color: bool = True
    state_file: Path = field(default=STATE_FILE)


def load_settings_file(path: Path = SETTINGS_FILE) -> dict:
    """Load the optional settings file."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f'Invalid settings file {path}: {e}') from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f'Invalid settings file {path}: expected a mapping')

    unknown = set(data) - set(SETTINGS_TYPES)
    if unknown:
        raise ConfigError(f'Unknown settings in {path}: {", ".join(sorted(unknown))}')

    for key, value in data.items():
        expected = SETTINGS_TYPES[key]
        if not isinstance(value, expected) or (expected is str and not value.strip()):
            raise ConfigError(f'Invalid settings file {path}: `{key}` must be a non-empty {expected.__name__}')
    return data


def load_settings(
    path: Path = SETTINGS_FILE,
    env: Mapping[str, str] | None = None,
    manifest: Path | None = None,
) -> Settings:
    """Resolve settings: file, then environment, then explicit CLI values."""
    env = env or {}
    data = load_settings_file(path)
    settings = Settings()

    if 'manifest' in data:
        settings.manifest = Path(data['manifest']).expanduser()
    if 'pacman' in data:
        settings.pacman = data['pacman']
    if 'aur_helper' in data:
        settings.aur_helper = data['aur_helper']
    if 'color' in data:
        settings.color = data['color']

    if env.get('DECPAC_CONFIG'):
        settings.manifest = Path(env['DECPAC_CONFIG']).expanduser()
    if env.get('PACMAN'):
        settings.pacman = env['PACMAN']
    if env.get('AUR_HELPER') or env.get('YAY'):
        settings.aur_helper = env.get('AUR_HELPER') or env['YAY']
    if 'NO_COLOR' in env or 'DECPAC_NO_COLOR' in env:
        settings.color = False

    if manifest is not None:
        settings.manifest = manifest

    return settings

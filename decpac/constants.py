from pathlib import Path

CONFIG_DIR = Path.home() / '.config' / 'decpac'
MANIFEST_FILE = CONFIG_DIR / 'pkg.conf'
SETTINGS_FILE = CONFIG_DIR / 'config.yaml'
STATE_FILE = CONFIG_DIR / 'state.yaml'

COMMENT_MARKER = '//'
SECTION_MARKER = '##'
AUR_PREFIX = 'aur:'

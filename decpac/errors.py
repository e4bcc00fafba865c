from pathlib import Path


class DecpacError(Exception):
    """Base error. Carries the process exit code and an optional hint."""

    exit_code = 1
    hint: str | None = None


class ConfigNotFoundError(DecpacError):
    hint = 'Create the file or specify a different path with --config'

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f'Configuration file not found\n  Path: {path}')


class ConfigError(DecpacError):
    """Settings file could not be used."""


class ManifestParseError(DecpacError):
    """Malformed manifest. `line` is 1-indexed, 0 when not tied to a line."""

    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f'Configuration error at line {line}: {message}')


class HostnameError(DecpacError):
    pass


class PermissionDeniedError(DecpacError):
    exit_code = 2
    hint = 'Run with sudo or check your permissions'

    def __init__(self, message: str):
        super().__init__(f'Permission denied: {message}')


class InstallError(DecpacError):
    exit_code = 3

    def __init__(self, message: str):
        super().__init__(f'Package installation failed: {message}')


class PrerequisiteMissingError(DecpacError):
    exit_code = 4

    def __init__(self, helper: str):
        self.helper = helper
        self.hint = (
            f'Install {helper}: git clone https://aur.archlinux.org/{helper}.git '
            f'&& cd {helper} && makepkg -si'
        )
        super().__init__(f'AUR packages found but {helper} is not installed')


class UserCancelledError(DecpacError):
    exit_code = 6

    def __init__(self):
        super().__init__('User cancelled operation')

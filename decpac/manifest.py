import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from decpac.constants import AUR_PREFIX, COMMENT_MARKER, SECTION_MARKER
from decpac.errors import ConfigNotFoundError, ManifestParseError, PermissionDeniedError

HOSTNAME_RE = re.compile(r'[A-Za-z0-9-]+')
EXPECTED_HEADERS = 'Expected: ## * or ## @<hostname>'


class Source(Enum):
    REPO = 'repo'
    AUR = 'aur'


@dataclass(frozen=True)
class Scope:
    """Which hosts a section applies to. `host=None` means every host."""

    host: str | None = None

    @classmethod
    def universal(cls) -> 'Scope':
        return cls()

    @classmethod
    def for_host(cls, host: str) -> 'Scope':
        return cls(host=host)

    @property
    def is_universal(self) -> bool:
        return self.host is None

    def matches(self, host: str) -> bool:
        """Check if the section applies to `host` (exact, case-sensitive)."""
        return self.is_universal or self.host == host

    def __str__(self) -> str:
        if self.is_universal:
            return f'{SECTION_MARKER} *'
        return f'{SECTION_MARKER} @{self.host}'


@dataclass(frozen=True)
class Entry:
    name: str
    source: Source = Source.REPO

    def __str__(self) -> str:
        if self.source is Source.AUR:
            return f'{AUR_PREFIX}{self.name}'
        return self.name


@dataclass(frozen=True)
class Section:
    scope: Scope
    entries: tuple[Entry, ...] = ()


@dataclass(frozen=True)
class Manifest:
    """Parsed manifest: sections in declaration order."""

    sections: tuple[Section, ...] = ()

    @property
    def entry_count(self) -> int:
        return sum(len(s.entries) for s in self.sections)

    def sections_for(self, host: str) -> list[Section]:
        """Sections that apply to `host`, in declaration order."""
        return [s for s in self.sections if s.scope.matches(host)]


def strip_comment(line: str) -> str:
    """Drop everything from the first comment marker on, then trim."""
    pos = line.find(COMMENT_MARKER)
    if pos != -1:
        line = line[:pos]
    return line.strip()


def parse_scope(line: str, line_num: int) -> Scope:
    """Parse a `##` header line into a Scope."""
    rest = line[len(SECTION_MARKER):]
    if not rest.startswith(' '):
        raise ManifestParseError(
            line_num,
            f'Invalid section header: `{line}`\n'
            f'  {EXPECTED_HEADERS}\n'
            f'  Hint: Section headers must have a space after {SECTION_MARKER}',
        )

    value = rest[1:].strip()
    if value == '*':
        return Scope.universal()

    if value.startswith('@'):
        host = value[1:].strip()
        if not host:
            raise ManifestParseError(line_num, 'Empty hostname in section header')
        if not HOSTNAME_RE.fullmatch(host):
            raise ManifestParseError(
                line_num,
                f'Invalid hostname `{host}`: only alphanumeric characters and hyphens are allowed',
            )
        return Scope.for_host(host)

    raise ManifestParseError(line_num, f'Invalid section header: `{line}`\n  {EXPECTED_HEADERS}')


def parse_entry(line: str, line_num: int) -> Entry:
    """Parse a package line into an Entry."""
    if line.startswith(AUR_PREFIX):
        name = line[len(AUR_PREFIX):].strip()
        if not name:
            raise ManifestParseError(line_num, f'Empty AUR package name after `{AUR_PREFIX}` prefix')
        return Entry(name, Source.AUR)
    return Entry(line)


def parse_manifest(text: str) -> Manifest:
    """Parse manifest text. Stops at the first error.

    Raises ManifestParseError with the 1-indexed line of the offending input.
    """
    # (scope, entries) pairs; frozen into Sections once parsing succeeds
    sections: list[tuple[Scope, list[Entry]]] = []

    for line_num, raw_line in enumerate(text.split('\n'), start=1):
        line = strip_comment(raw_line)
        if not line:
            continue

        if line.startswith(SECTION_MARKER):
            sections.append((parse_scope(line, line_num), []))
            continue

        if not sections:
            raise ManifestParseError(line_num, 'Package found before any section header')

        sections[-1][1].append(parse_entry(line, line_num))

    return Manifest(tuple(Section(scope, tuple(entries)) for scope, entries in sections))


def dump_manifest(manifest: Manifest) -> str:
    """Serialize a manifest back to text."""
    blocks = []
    for section in manifest.sections:
        lines = [str(section.scope)] + [str(e) for e in section.entries]
        blocks.append('\n'.join(lines))
    if not blocks:
        return ''
    return '\n\n'.join(blocks) + '\n'


def load_manifest(path: Path) -> Manifest:
    """Read and parse the manifest at `path`."""
    if not path.exists():
        raise ConfigNotFoundError(path)
    try:
        text = path.read_text(encoding='utf-8')
    except PermissionError as e:
        raise PermissionDeniedError(f'Cannot read config file: {path}') from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestParseError(0, f'Failed to read config file: {e}') from e
    return parse_manifest(text)

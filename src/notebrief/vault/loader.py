"""Vault loader - turns a directory of markdown notes into raw documents."""
import fnmatch
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Optional

from ..config import NOTE_EXTENSIONS

logger = logging.getLogger(__name__)


def should_exclude(path: Path, patterns: list[str]) -> bool:
    """True if any component of a vault-relative path matches an exclude pattern.

    Patterns are globs compared per component, so 'archive' skips
    ``archive/old.md`` but keeps ``archives.md``, and '.*' skips hidden folders.
    """
    return any(
        fnmatch.fnmatchcase(part, pattern)
        for part in path.parts
        for pattern in patterns
    )


def find_note_files(root: Path, exclude_patterns: list[str]) -> Generator[Path, None, None]:
    """Find all note files under root, respecting exclude patterns."""
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in NOTE_EXTENSIONS:
            continue
        if should_exclude(path.relative_to(root), exclude_patterns):
            continue
        yield path


class NoteParser:
    """Parser for one markdown note - frontmatter, title, tags and links."""

    FRONTMATTER_PATTERN = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)', re.DOTALL)
    FRONTMATTER_KEY_PATTERN = re.compile(r'^([A-Za-z0-9_-]+)\s*:\s*(.*)$')
    H1_PATTERN = re.compile(r'^#\s+(.+?)(?:\s+#*)?$', re.MULTILINE)
    HASHTAG_PATTERN = re.compile(r'(?<![\w#&/])#([A-Za-z][\w/-]*)')
    WIKI_LINK_PATTERN = re.compile(r'\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]')
    MARKDOWN_LINK_PATTERN = re.compile(r'\[([^\]]+)\]\(([^)\s]+)\)')
    CODE_BLOCK_PATTERN = re.compile(r'```[\s\S]*?```')

    def __init__(self, file_path: Path, base_path: Path):
        self.file_path = file_path
        self.base_path = base_path
        self.raw: str = ""
        self.body: str = ""
        self.frontmatter: dict[str, Any] = {}

    def parse(self) -> None:
        """Read and split the note.

        Raises:
            OSError: The file cannot be read.
            UnicodeDecodeError: The file is not UTF-8.
        """
        self.raw = self.file_path.read_text(encoding='utf-8')
        match = self.FRONTMATTER_PATTERN.match(self.raw)
        if match:
            self.frontmatter = self._parse_frontmatter(match.group(1))
            self.body = self.raw[match.end():]
        else:
            self.frontmatter = {}
            self.body = self.raw

    def _parse_frontmatter(self, block: str) -> dict[str, Any]:
        """Parse flat ``key: value`` frontmatter, with inline and dashed lists."""
        data: dict[str, Any] = {}
        current_key: Optional[str] = None

        for line in block.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue

            # Continuation of a dashed list
            if stripped.startswith('- ') and current_key is not None:
                existing = data.get(current_key)
                items = existing if isinstance(existing, list) else []
                items.append(_unquote(stripped[2:]))
                data[current_key] = items
                continue

            match = self.FRONTMATTER_KEY_PATTERN.match(stripped)
            if not match:
                continue
            current_key, value = match.group(1), match.group(2).strip()

            if value.startswith('[') and value.endswith(']'):
                data[current_key] = [_unquote(v) for v in value[1:-1].split(',') if v.strip()]
            elif value:
                data[current_key] = _unquote(value)
            else:
                data[current_key] = []

        return data

    @property
    def title(self) -> str:
        """Frontmatter title, else first h1, else the file name."""
        title = self.frontmatter.get('title')
        if isinstance(title, str) and title.strip():
            return title.strip()
        match = self.H1_PATTERN.search(self.CODE_BLOCK_PATTERN.sub('', self.body))
        if match:
            return match.group(1).strip()
        return self.file_path.stem

    @property
    def tags(self) -> list[str]:
        """Frontmatter tags plus inline #hashtags, in first-seen order."""
        declared = self.frontmatter.get('tags', [])
        if isinstance(declared, str):
            declared = declared.replace(',', ' ').split()

        tags: list[str] = []
        for tag in [*declared, *self.HASHTAG_PATTERN.findall(self.CODE_BLOCK_PATTERN.sub('', self.body))]:
            tag = str(tag).strip().lstrip('#')
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @property
    def links(self) -> list[str]:
        """Targets of [[wiki links]] and [text](markdown links)."""
        links: list[str] = []
        for target in self.WIKI_LINK_PATTERN.findall(self.body):
            target = target.strip()
            if target and target not in links:
                links.append(target)
        for _, target in self.MARKDOWN_LINK_PATTERN.findall(self.body):
            if target not in links:
                links.append(target)
        return links

    def get_record(self) -> dict[str, Any]:
        """Raw document mapping as consumed by the document index."""
        stat = self.file_path.stat()
        return {
            "path": self.file_path.relative_to(self.base_path).as_posix(),
            "title": self.title,
            "content": self.body,
            "tags": self.tags,
            "frontmatter": self.frontmatter,
            "links": self.links,
            "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        }


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in '"\'':
        return value[1:-1]
    return value


def parse_note(file_path: Path, base_path: Path) -> dict[str, Any]:
    """Parse one note file into a raw document mapping."""
    parser = NoteParser(file_path, base_path)
    parser.parse()
    return parser.get_record()


@dataclass
class VaultScan:
    """Raw documents found in a vault, plus files that could not be read."""
    vault_path: Path
    documents: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)  # {path, error}
    scanned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def load_vault(root: Path, exclude_patterns: Optional[list[str]] = None) -> VaultScan:
    """Scan a vault directory for notes.

    Args:
        root: Vault directory.
        exclude_patterns: Path component patterns to skip.

    Returns:
        VaultScan with one raw document per readable note.

    Raises:
        NotADirectoryError: root is not a directory.
    """
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    scan = VaultScan(vault_path=root)
    for path in find_note_files(root, exclude_patterns or []):
        rel_path = path.relative_to(root).as_posix()
        try:
            scan.documents.append(parse_note(path, root))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read note %s: %s", rel_path, e)
            scan.errors.append({"path": rel_path, "error": str(e)})

    logger.info("Found %d notes in %s (%d unreadable)", len(scan.documents), root, len(scan.errors))
    return scan

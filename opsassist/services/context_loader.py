"""Loads reference documents that describe the managed infrastructure."""

import time
from dataclasses import dataclass, field
from pathlib import Path

from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

UNSAFE_PATH_PREFIXES = ("/etc", "/var", "/usr", "/bin", "/sbin", "/lib", "/sys", "/proc", "/dev", "/root")

CONTEXT_FILE_EXTENSIONS = frozenset({".md", ".txt", ".yaml", ".yml", ".json", ""})


@dataclass
class LoadedContext:
    """Reference documents found in a context directory."""

    directory: str
    claude_md: str | None = None
    context_files: dict[str, str] = field(default_factory=dict)

    @property
    def combined(self) -> str:
        """All documents as one prompt section, or an empty string if none were found."""
        if self.claude_md is None and not self.context_files:
            return ""

        parts = [f"## Infrastructure Context\n\nContext loaded from: `{self.directory}`"]
        if self.claude_md is not None:
            parts.append(f"### From CLAUDE.md\n\n{self.claude_md}")
        if self.context_files:
            parts.append("### Additional Context Files")
            for filename, content in self.context_files.items():
                parts.append(f"#### {filename}\n\n{content}")
        return "\n\n".join(parts)


def validate_context_dir(context_dir: str) -> Path:
    """Resolve a context directory, refusing parent references and system paths.

    Raises:
        ValueError: If the path is unsafe
    """
    if ".." in Path(context_dir).parts:
        raise ValueError('Context directory path cannot contain ".." (parent directory references)')

    resolved = Path(context_dir).resolve()
    for prefix in UNSAFE_PATH_PREFIXES:
        if resolved == Path(prefix) or resolved.is_relative_to(prefix):
            raise ValueError(f"Context directory cannot be under system path: {prefix}")
    return resolved


def load_context_from_directory(context_dir: str) -> LoadedContext:
    """Read CLAUDE.md and the text files under .claude/context/."""
    resolved = validate_context_dir(context_dir)
    loaded = LoadedContext(directory=str(resolved))

    claude_md = resolved / "CLAUDE.md"
    if claude_md.is_file():
        loaded.claude_md = claude_md.read_text(encoding="utf-8", errors="replace")
        logger.debug(f"Loaded CLAUDE.md from {claude_md}")

    extra_dir = resolved / ".claude" / "context"
    if extra_dir.is_dir():
        for entry in sorted(extra_dir.iterdir()):
            if not entry.is_file() or entry.suffix.lower() not in CONTEXT_FILE_EXTENSIONS:
                continue
            try:
                loaded.context_files[entry.name] = entry.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(f"Failed to read context file {entry.name}: {e}")

    return loaded


class ContextCache:
    """Caches loaded context per directory for a fixed time."""

    def __init__(self, ttl_seconds: float = 300.0):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[float, LoadedContext]] = {}

    def get(self, context_dir: str | None) -> LoadedContext | None:
        """Return cached context, reloading it once the entry has expired."""
        if not context_dir:
            return None

        now = time.monotonic()
        entry = self._entries.get(context_dir)
        if entry is not None and now - entry[0] < self.ttl_seconds:
            return entry[1]

        loaded = load_context_from_directory(context_dir)
        self._entries[context_dir] = (now, loaded)
        return loaded

    def clear(self) -> None:
        self._entries.clear()

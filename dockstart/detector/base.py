"""Base class and shared helpers for all ecosystem detectors.

A detector checks a project directory for its own manifest file. A missing
manifest is not an error: detect() returns None so the registry can run
every detector against any directory. A manifest that exists but cannot be
read or parsed raises ManifestError instead of producing a partial result.
"""

import logging
import tomllib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from dockstart.detector.types import Detection

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """A manifest file exists but is unreadable or malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class Detector(ABC):
    """Abstract base class for all ecosystem detectors.

    Subclasses are stateless: all rule tables are module-level constants, so
    a single instance can be reused across directories and threads.
    """

    #: Stable identifier, e.g. "node" or "python"
    name: str = ""

    #: Manifest filenames this detector looks for, in precedence order
    manifest_names: tuple[str, ...] = ()

    @abstractmethod
    def detect(self, path: Path) -> Optional[Detection]:
        """Analyze a project directory.

        Args:
            path: Directory to inspect.

        Returns:
            A fully populated Detection, or None when this ecosystem's
            manifest is absent.

        Raises:
            ManifestError: The manifest exists but could not be read or parsed.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# ---------------------------------------------------------------------------
# Manifest helpers
# ---------------------------------------------------------------------------

def read_manifest_text(path: Path) -> str:
    """Read a manifest as UTF-8 text, raising ManifestError on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(path, f"cannot read manifest: {exc}") from exc


def load_toml(path: Path) -> dict:
    """Parse a TOML manifest, raising ManifestError on failure."""
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(path, f"invalid TOML: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(path, f"cannot read manifest: {exc}") from exc


def find_upload_dir(root: Path, candidates: Iterable[str]) -> str:
    """Return the first candidate that exists as a directory under root.

    Returns an empty string when none of the candidates exist.
    """
    for candidate in candidates:
        if (root / candidate).is_dir():
            logger.debug("Upload directory found: %s", candidate)
            return candidate
    return ""


def append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)


def clamp_confidence(value: float) -> float:
    """Clamp an additive confidence score into [0, 1].

    Rounded to two decimals first so sums like 0.5 + 0.3 + 0.1 + 0.1
    land exactly on 1.0.
    """
    return max(0.0, min(round(value, 2), 1.0))


def table_get(data: dict, *keys: str) -> dict:
    """Walk nested manifest tables, returning {} for anything missing or not a table."""
    current = data
    for key in keys:
        value = current.get(key) if isinstance(current, dict) else None
        if not isinstance(value, dict):
            return {}
        current = value
    return current


def string_field(table: dict, key: str) -> str:
    """Return a string field from a manifest table, or "" if absent or not a string."""
    value = table.get(key)
    return value if isinstance(value, str) else ""

"""requirements.txt parser for Python project detection.

Parses requirements.txt line-by-line. Strips version specifiers, extras,
comments and pip flags.
"""

import logging
from pathlib import Path
from typing import Optional

from dockstart.detector.base import read_manifest_text
from dockstart.detector.python.pyproject import extract_package_name

logger = logging.getLogger(__name__)

MANIFEST = "requirements.txt"


def parse_requirements(repo_dir: Path) -> Optional[list[str]]:
    """Return lower-cased package names from requirements.txt, in file order.

    Returns None when the file is absent. Raises ManifestError when it
    cannot be read.
    """
    path = repo_dir / MANIFEST
    if not path.exists():
        return None

    packages: list[str] = []
    for line in read_manifest_text(path).splitlines():
        line = line.strip()
        # Skip comments, blank lines, and pip flags (-r, -e, --index-url, etc.)
        if not line or line.startswith("#") or line.startswith("-"):
            continue
        line = line.split("#")[0].strip()
        name = extract_package_name(line)
        if name:
            packages.append(name)

    logger.debug("Parsed requirements.txt: %d packages", len(packages))
    return packages

"""pyproject.toml parser for Python project detection.

Uses stdlib tomllib (Python 3.11+). Handles both modern PEP 621
[project] tables and Poetry's [tool.poetry] layout.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dockstart.detector.base import ManifestError, load_toml, string_field, table_get

logger = logging.getLogger(__name__)

MANIFEST = "pyproject.toml"

_PKG_NAME_RE = re.compile(r"^([a-zA-Z0-9_-]+)")


@dataclass
class PyProject:
    """The parts of pyproject.toml the detector cares about."""

    name: str = ""
    poetry_name: str = ""
    requires_python: str = ""
    poetry_python: str = ""
    dependencies: list[str] = field(default_factory=list)
    # True when [project.dependencies] or [tool.poetry.dependencies] is non-empty
    has_runtime_deps: bool = False

    @property
    def app_name(self) -> str:
        return self.name or self.poetry_name

    @property
    def python_constraint(self) -> str:
        return self.requires_python or self.poetry_python


def extract_package_name(dep_str: str) -> str:
    """Extract the bare, lower-cased package name from a requirement string.

    "redis>=4.0.0" -> "redis", "uvicorn[standard]" -> "uvicorn".
    Returns "" when the string does not start with a package name.
    """
    match = _PKG_NAME_RE.match(dep_str.strip())
    return match.group(1).lower() if match else ""


def parse_pyproject(repo_dir: Path) -> Optional[PyProject]:
    """Parse pyproject.toml in repo_dir.

    Returns None when the file is absent. Raises ManifestError when it
    cannot be read or is not valid TOML.
    """
    path = repo_dir / MANIFEST
    if not path.exists():
        return None

    data = load_toml(path)
    project = table_get(data, "project")
    poetry = table_get(data, "tool", "poetry")

    result = PyProject(
        name=string_field(project, "name"),
        poetry_name=string_field(poetry, "name"),
        requires_python=string_field(project, "requires-python"),
    )

    project_deps = _string_list(path, project.get("dependencies", []), "project.dependencies")
    _add_names(result.dependencies, project_deps)

    for extra, extra_deps in table_get(project, "optional-dependencies").items():
        _add_names(
            result.dependencies,
            _string_list(path, extra_deps, f"project.optional-dependencies.{extra}"),
        )

    # Poetry tables are {name: constraint}; the python key is the interpreter.
    poetry_deps = table_get(poetry, "dependencies")
    python_spec = poetry_deps.get("python")
    if isinstance(python_spec, str):
        result.poetry_python = python_spec
    poetry_runtime = [name.lower() for name in poetry_deps if name.lower() != "python"]
    result.dependencies.extend(poetry_runtime)

    result.dependencies.extend(name.lower() for name in table_get(poetry, "dev-dependencies"))
    for group in table_get(poetry, "group").values():
        result.dependencies.extend(name.lower() for name in table_get(group, "dependencies"))

    result.has_runtime_deps = bool(project_deps or poetry_deps)

    logger.debug(
        "Parsed pyproject.toml: name=%s deps=%d",
        result.app_name or "<none>",
        len(result.dependencies),
    )
    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _string_list(path: Path, value: object, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(path, f"{key} must be a list of strings")
    return value


def _add_names(names: list[str], dep_strs: list[str]) -> None:
    for dep_str in dep_strs:
        name = extract_package_name(dep_str)
        if name:
            names.append(name)

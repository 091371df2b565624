"""Python ecosystem detector.

Entry point: PythonDetector().detect(repo_dir) -> Detection | None

pyproject.toml takes priority over requirements.txt; only one of them is
read per call.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from dockstart.detector.base import Detector, clamp_confidence, find_upload_dir
from dockstart.detector.python import pyproject, requirements
from dockstart.detector.python.defaults import (
    DEFAULT_APP_NAME,
    DEFAULT_PYTHON_VERSION,
    JAEGER_TRACERS,
    JSON_LOGGERS,
    LOGGING_UTILITIES,
    METRICS_LIBRARIES,
    OTLP_TRACERS,
    QUEUE_LIBRARIES,
    SERVICE_INDICATORS,
    TEXT_LOGGERS,
    UPLOAD_DIRS,
    UPLOAD_LIBRARIES,
    VSCODE_EXTENSIONS,
    WEB_FRAMEWORKS,
    WORKER_COMMANDS,
    ZIPKIN_TRACERS,
)
from dockstart.detector.types import (
    DEFAULT_METRICS_PATH,
    DEFAULT_METRICS_PORTS,
    LANGUAGE_PYTHON,
    LOG_FORMAT_JSON,
    LOG_FORMAT_TEXT,
    LOG_FORMAT_UNKNOWN,
    MULTIPART_SENTINEL,
    TRACING_JAEGER,
    TRACING_OTLP,
    TRACING_ZIPKIN,
    Detection,
)

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"\d+\.\d+")

# Fixed confidence when only requirements.txt is present
REQUIREMENTS_CONFIDENCE = 0.6


def parse_version_constraint(constraint: str) -> str:
    """Extract major.minor from a Python version constraint.

    ">=3.10" -> "3.10", "^3.11" -> "3.11", ">=3.9,<4.0" -> "3.9",
    "~=3.10.0" -> "3.10". Falls back to DEFAULT_PYTHON_VERSION.
    """
    match = _VERSION_RE.search(constraint)
    if match:
        return match.group(0)
    return DEFAULT_PYTHON_VERSION


class PythonDetector(Detector):
    """Detects Python projects from pyproject.toml or requirements.txt."""

    name = LANGUAGE_PYTHON
    manifest_names = (pyproject.MANIFEST, requirements.MANIFEST)

    def detect(self, path: Path) -> Optional[Detection]:
        repo_dir = Path(path)

        project = pyproject.parse_pyproject(repo_dir)
        if project is not None:
            constraint = project.python_constraint
            detection = Detection(
                language=LANGUAGE_PYTHON,
                version=parse_version_constraint(constraint) if constraint else DEFAULT_PYTHON_VERSION,
                confidence=_pyproject_confidence(project),
            )
            _apply_rules(detection, project.dependencies, project.app_name, repo_dir)
            return detection

        packages = requirements.parse_requirements(repo_dir)
        if packages is None:
            return None

        detection = Detection(
            language=LANGUAGE_PYTHON,
            version=DEFAULT_PYTHON_VERSION,
            confidence=REQUIREMENTS_CONFIDENCE,
        )
        _apply_rules(detection, packages, "", repo_dir)
        return detection


def _pyproject_confidence(project: pyproject.PyProject) -> float:
    confidence = 0.7  # pyproject.toml exists
    if project.app_name:
        confidence += 0.1
    if project.requires_python:
        confidence += 0.1
    if project.has_runtime_deps:
        confidence += 0.1
    return clamp_confidence(confidence)


def _apply_rules(detection: Detection, deps: list[str], app_name: str, repo_dir: Path) -> None:
    dep_set = set(deps)

    for dep in deps:
        for service, packages in SERVICE_INDICATORS:
            if any(_matches_package(dep, pkg) for pkg in packages):
                detection.add_service(service)

    _detect_logging(detection, deps)
    _detect_queue(detection, dep_set, app_name or DEFAULT_APP_NAME)
    _detect_file_upload(detection, dep_set, repo_dir)
    _detect_metrics(detection, dep_set)
    _detect_tracing(detection, deps)
    detection.vscode_extensions = list(VSCODE_EXTENSIONS)

    logger.debug(
        "Python detection: version=%s deps=%d confidence=%.2f",
        detection.version,
        len(dep_set),
        detection.confidence,
    )


def _matches_package(dep: str, pkg: str) -> bool:
    return dep == pkg or dep.startswith(pkg + "-")


def _matches_entry(dep: str, entry: str) -> bool:
    """Entries ending in "-" match as prefixes, everything else exactly."""
    if entry.endswith("-"):
        return dep.startswith(entry)
    return dep == entry


def _detect_logging(detection: Detection, deps: list[str]) -> None:
    json_loggers = dict(JSON_LOGGERS)
    text_loggers = dict(TEXT_LOGGERS)

    for dep in deps:
        if dep in json_loggers:
            detection.add_logging_library(json_loggers[dep])
            detection.log_format = LOG_FORMAT_JSON
        elif dep in text_loggers:
            detection.add_logging_library(text_loggers[dep])
            if detection.log_format == LOG_FORMAT_UNKNOWN:
                detection.log_format = LOG_FORMAT_TEXT
        elif dep in LOGGING_UTILITIES:
            detection.add_logging_library(dep)


def _detect_queue(detection: Detection, deps: set[str], app_name: str) -> None:
    for pkg in QUEUE_LIBRARIES:
        if pkg in deps:
            detection.add_queue_library(pkg)

    for library, template in WORKER_COMMANDS:
        if detection.has_queue_library(library):
            detection.worker_command = template.format(app=app_name)
            break


def _detect_file_upload(detection: Detection, deps: set[str], repo_dir: Path) -> None:
    for pkg in UPLOAD_LIBRARIES:
        if pkg in deps:
            detection.add_file_upload_library(pkg)

    has_framework = any(fw in deps for fw in WEB_FRAMEWORKS)
    if not (detection.file_upload_libraries or has_framework):
        return

    upload_dir = find_upload_dir(repo_dir, UPLOAD_DIRS)
    if not upload_dir:
        return
    detection.upload_path = upload_dir
    if not detection.file_upload_libraries:
        detection.add_file_upload_library(MULTIPART_SENTINEL)


def _detect_metrics(detection: Detection, deps: set[str]) -> None:
    normalised = {dep.replace("_", "-") for dep in deps}
    for pkg, name in METRICS_LIBRARIES:
        if pkg in normalised:
            detection.add_metrics_library(name)

    if detection.metrics_libraries:
        detection.metrics_port = DEFAULT_METRICS_PORTS[LANGUAGE_PYTHON]
        detection.metrics_path = DEFAULT_METRICS_PATH


def _detect_tracing(detection: Detection, deps: list[str]) -> None:
    protocols: set[str] = set()
    for dep in deps:
        for protocol, entries in (
            (TRACING_OTLP, OTLP_TRACERS),
            (TRACING_JAEGER, JAEGER_TRACERS),
            (TRACING_ZIPKIN, ZIPKIN_TRACERS),
        ):
            if any(_matches_entry(dep, entry) for entry in entries):
                detection.add_tracing_library(dep)
                protocols.add(protocol)
                break

    for protocol in (TRACING_OTLP, TRACING_JAEGER, TRACING_ZIPKIN):
        if protocol in protocols:
            detection.tracing_protocol = protocol
            break

"""Go ecosystem detector.

Entry point: GoDetector().detect(repo_dir) -> Detection | None
"""

import logging
from pathlib import Path
from typing import Optional

from dockstart.detector.base import Detector, clamp_confidence, find_upload_dir
from dockstart.detector.go.gomod import (
    DEFAULT_GO_VERSION,
    JSON_LOGGERS,
    MANIFEST,
    METRICS_LIBRARIES,
    QUEUE_LIBRARIES,
    SERVICE_INDICATORS,
    TEXT_LOGGERS,
    TRACING_EXCLUDED,
    TRACING_LIBRARIES,
    UPLOAD_DIRS,
    UPLOAD_LIBRARIES,
    WEB_FRAMEWORKS,
    GoModule,
    binary_name,
    has_prefix,
    parse_gomod,
)
from dockstart.detector.types import (
    DEFAULT_METRICS_PATH,
    DEFAULT_METRICS_PORTS,
    LANGUAGE_GO,
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

VSCODE_EXTENSIONS: tuple[str, ...] = ("golang.go",)


class GoDetector(Detector):
    """Detects Go projects from go.mod."""

    name = LANGUAGE_GO
    manifest_names = (MANIFEST,)

    def detect(self, path: Path) -> Optional[Detection]:
        repo_dir = Path(path)
        mod = parse_gomod(repo_dir)
        if mod is None:
            return None

        requires = mod.requires
        detection = Detection(
            language=LANGUAGE_GO,
            version=mod.go_version,
            confidence=_calculate_confidence(mod),
        )

        for req in requires:
            for service, prefixes in SERVICE_INDICATORS:
                if any(req.startswith(prefix) for prefix in prefixes):
                    detection.add_service(service)

        _detect_logging(detection, requires)
        _detect_queue(detection, requires, mod.module)
        _detect_file_upload(detection, requires, repo_dir)
        _detect_metrics(detection, requires)
        _detect_tracing(detection, requires)
        detection.vscode_extensions = list(VSCODE_EXTENSIONS)

        logger.debug(
            "Go detection: module=%s version=%s confidence=%.2f",
            mod.module or "<none>",
            detection.version,
            detection.confidence,
        )
        return detection


def _calculate_confidence(mod: GoModule) -> float:
    confidence = 0.6  # go.mod exists
    if mod.module:
        confidence += 0.2
    if mod.go_version != DEFAULT_GO_VERSION:
        confidence += 0.1
    if mod.requires:
        confidence += 0.1
    return clamp_confidence(confidence)


def _detect_logging(detection: Detection, requires: list[str]) -> None:
    for prefix, name in JSON_LOGGERS:
        if has_prefix(requires, prefix):
            detection.add_logging_library(name)
            detection.log_format = LOG_FORMAT_JSON

    for prefix, name in TEXT_LOGGERS:
        if has_prefix(requires, prefix):
            detection.add_logging_library(name)
            if detection.log_format == LOG_FORMAT_UNKNOWN:
                detection.log_format = LOG_FORMAT_TEXT


def _detect_queue(detection: Detection, requires: list[str], module: str) -> None:
    for prefix, name in QUEUE_LIBRARIES:
        if has_prefix(requires, prefix):
            detection.add_queue_library(name)

    if detection.queue_libraries:
        detection.worker_command = f"./{binary_name(module)} worker"


def _detect_file_upload(detection: Detection, requires: list[str], repo_dir: Path) -> None:
    for prefix, name in UPLOAD_LIBRARIES:
        if has_prefix(requires, prefix):
            detection.add_file_upload_library(name)

    has_framework = any(has_prefix(requires, fw) for fw in WEB_FRAMEWORKS)
    if not (detection.file_upload_libraries or has_framework):
        return

    upload_dir = find_upload_dir(repo_dir, UPLOAD_DIRS)
    if not upload_dir:
        return
    detection.upload_path = upload_dir
    # A framework plus an uploads directory implies multipart handling.
    if not detection.file_upload_libraries:
        detection.add_file_upload_library(MULTIPART_SENTINEL)


def _detect_metrics(detection: Detection, requires: list[str]) -> None:
    for prefix, name in METRICS_LIBRARIES:
        if has_prefix(requires, prefix):
            detection.add_metrics_library(name)

    if detection.metrics_libraries:
        detection.metrics_port = DEFAULT_METRICS_PORTS[LANGUAGE_GO]
        detection.metrics_path = DEFAULT_METRICS_PATH


def _detect_tracing(detection: Detection, requires: list[str]) -> None:
    tracing_requires = [
        req for req in requires
        if not any(req.startswith(excluded) for excluded in TRACING_EXCLUDED)
    ]
    for prefix, name in TRACING_LIBRARIES:
        if has_prefix(tracing_requires, prefix):
            detection.add_tracing_library(name)

    libs = detection.tracing_libraries
    if any(lib.startswith("go.opentelemetry.io/") for lib in libs):
        detection.tracing_protocol = TRACING_OTLP
    elif "github.com/uber/jaeger-client-go" in libs:
        detection.tracing_protocol = TRACING_JAEGER
    elif "github.com/openzipkin/zipkin-go" in libs:
        detection.tracing_protocol = TRACING_ZIPKIN

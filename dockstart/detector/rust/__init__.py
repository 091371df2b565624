"""Rust ecosystem detector.

Entry point: RustDetector().detect(repo_dir) -> Detection | None
"""

import logging
from pathlib import Path
from typing import Optional

from dockstart.detector.base import Detector, clamp_confidence, find_upload_dir
from dockstart.detector.rust.cargo import (
    LOG_FACADE,
    MANIFEST,
    METRICS_LIBRARIES,
    OTEL_GENERIC_TRACERS,
    OTEL_JAEGER,
    OTEL_ZIPKIN,
    QUEUE_LIBRARIES,
    SERVICE_INDICATORS,
    TEXT_LOGGERS,
    TRACING_LIBRARIES,
    TRACING_LOGGER,
    TRACING_OPENTELEMETRY,
    TRACING_SUBSCRIBER,
    UPLOAD_DIRS,
    UPLOAD_LIBRARIES,
    WEB_FRAMEWORKS,
    CargoManifest,
    parse_cargo,
    rust_version,
)
from dockstart.detector.types import (
    DEFAULT_METRICS_PATH,
    DEFAULT_METRICS_PORTS,
    LANGUAGE_RUST,
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

VSCODE_EXTENSIONS: tuple[str, ...] = ("rust-lang.rust-analyzer",)


class RustDetector(Detector):
    """Detects Rust projects from Cargo.toml."""

    name = LANGUAGE_RUST
    manifest_names = (MANIFEST,)

    def detect(self, path: Path) -> Optional[Detection]:
        repo_dir = Path(path)
        manifest = parse_cargo(repo_dir)
        if manifest is None:
            return None

        deps = set(manifest.all_dependencies)
        detection = Detection(
            language=LANGUAGE_RUST,
            version=rust_version(manifest),
            confidence=_calculate_confidence(manifest),
        )

        for service, crates in SERVICE_INDICATORS:
            if deps & crates:
                detection.add_service(service)

        _detect_logging(detection, deps)
        _detect_queue(detection, deps, manifest.name)
        _detect_file_upload(detection, deps, repo_dir)
        _detect_metrics(detection, deps)
        _detect_tracing(detection, deps)
        detection.vscode_extensions = list(VSCODE_EXTENSIONS)

        logger.debug(
            "Rust detection: package=%s version=%s confidence=%.2f",
            manifest.name or "<none>",
            detection.version,
            detection.confidence,
        )
        return detection


def _calculate_confidence(manifest: CargoManifest) -> float:
    confidence = 0.7  # Cargo.toml exists
    if manifest.name:
        confidence += 0.1
    if manifest.edition:
        confidence += 0.1
    if manifest.dependencies:
        confidence += 0.1
    return clamp_confidence(confidence)


def _detect_logging(detection: Detection, deps: set[str]) -> None:
    if TRACING_LOGGER in deps:
        detection.add_logging_library(TRACING_LOGGER)
        if TRACING_SUBSCRIBER in deps:
            detection.log_format = LOG_FORMAT_JSON

    backends = [crate for crate in TEXT_LOGGERS if crate in deps]
    if not backends:
        return
    # The log facade on its own emits nothing; record it next to its backend.
    if LOG_FACADE in deps:
        detection.add_logging_library(LOG_FACADE)
    for crate in backends:
        detection.add_logging_library(crate)
    if detection.log_format == LOG_FORMAT_UNKNOWN:
        detection.log_format = LOG_FORMAT_TEXT


def _detect_queue(detection: Detection, deps: set[str], package_name: str) -> None:
    for crate in QUEUE_LIBRARIES:
        if crate in deps:
            detection.add_queue_library(crate)

    if detection.queue_libraries:
        detection.worker_command = f"./{package_name or 'app'} worker"


def _detect_file_upload(detection: Detection, deps: set[str], repo_dir: Path) -> None:
    for crate in UPLOAD_LIBRARIES:
        if crate in deps:
            detection.add_file_upload_library(crate)

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
    for crate in METRICS_LIBRARIES:
        if crate in deps:
            detection.add_metrics_library(crate)

    if detection.metrics_libraries:
        detection.metrics_port = DEFAULT_METRICS_PORTS[LANGUAGE_RUST]
        detection.metrics_path = DEFAULT_METRICS_PATH


def _detect_tracing(detection: Detection, deps: set[str]) -> None:
    for crate in TRACING_LIBRARIES:
        if crate in deps:
            detection.add_tracing_library(crate)

    if any(crate in deps for crate in OTEL_GENERIC_TRACERS):
        detection.tracing_protocol = TRACING_OTLP
    elif OTEL_ZIPKIN in deps:
        detection.tracing_protocol = TRACING_ZIPKIN
    elif OTEL_JAEGER in deps:
        detection.tracing_protocol = TRACING_JAEGER
    elif TRACING_OPENTELEMETRY in deps:
        detection.tracing_protocol = TRACING_OTLP

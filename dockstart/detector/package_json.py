"""package.json parser and Node.js detector.

Infers the Node.js version from engines.node and maps dependencies to
backing services and auxiliary libraries (logging, queues, uploads,
metrics, tracing). dependencies and devDependencies are merged before
every check: a library counts regardless of which section declares it.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

from dockstart.detector.base import (
    Detector,
    ManifestError,
    append_unique,
    clamp_confidence,
    find_upload_dir,
    read_manifest_text,
)
from dockstart.detector.types import (
    DEFAULT_METRICS_PATH,
    DEFAULT_METRICS_PORTS,
    LANGUAGE_NODE,
    LOG_FORMAT_JSON,
    LOG_FORMAT_TEXT,
    LOG_FORMAT_UNKNOWN,
    SERVICE_POSTGRES,
    SERVICE_REDIS,
    TRACING_JAEGER,
    TRACING_OTLP,
    TRACING_ZIPKIN,
    Detection,
)

logger = logging.getLogger(__name__)

MANIFEST = "package.json"

# Node 20 LTS when engines.node is missing or has no digits
DEFAULT_VERSION = "20"

_VERSION_RE = re.compile(r"\d+")

SERVICE_INDICATORS: tuple[tuple[str, frozenset[str]], ...] = (
    (SERVICE_POSTGRES, frozenset({
        "pg", "postgres", "postgresql", "prisma", "@prisma/client",
        "typeorm", "sequelize", "knex",
    })),
    (SERVICE_REDIS, frozenset({
        "redis", "ioredis", "@redis/client", "bull", "bullmq",
    })),
)

# Loggers that emit JSON by default
JSON_LOGGERS: tuple[str, ...] = ("pino", "bunyan", "roarr", "bole")

# Loggers that can emit JSON but default to text
CONFIGURABLE_LOGGERS: tuple[str, ...] = ("winston", "log4js", "loglevel", "signale")

# HTTP request loggers, usually paired with one of the above
REQUEST_LOGGERS: tuple[str, ...] = ("morgan", "express-winston")

QUEUE_LIBRARIES: tuple[str, ...] = (
    "bull", "bullmq", "bee-queue", "agenda", "kue", "pg-boss",
)

# Script names checked for the worker entry point, highest priority first.
WORKER_SCRIPTS: tuple[str, ...] = (
    "worker",
    "start:worker",
    "worker:start",
    "queue",
    "start:queue",
    "queue:start",
    "process",
    "jobs",
)
DEFAULT_WORKER_COMMAND = "node worker.js"

UPLOAD_LIBRARIES: tuple[str, ...] = (
    "multer",
    "formidable",
    "busboy",
    "express-fileupload",
    "multiparty",
    "connect-multiparty",
)

UPLOAD_DIRS: tuple[str, ...] = (
    "uploads",
    "upload",
    "files",
    "public/uploads",
    "static/uploads",
    "tmp/uploads",
)

# Maps package name to canonical metrics library name.
METRICS_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("prom-client", "prom-client"),
    ("express-prometheus-middleware", "express-prometheus-middleware"),
    ("express-prom-bundle", "express-prom-bundle"),
    ("prometheus-api-metrics", "prometheus-api-metrics"),
    ("@opentelemetry/exporter-prometheus", "opentelemetry-prometheus"),
    ("fastify-metrics", "fastify-metrics"),
    ("koa-prometheus-exporter", "koa-prometheus-exporter"),
    ("nestjs-prometheus", "nestjs-prometheus"),
)

OTEL_SCOPE = "@opentelemetry/"

TRACING_LIBRARIES: tuple[str, ...] = (
    "@opentelemetry/api",
    "@opentelemetry/sdk-node",
    "@opentelemetry/sdk-trace-node",
    "@opentelemetry/sdk-trace-base",
    "@opentelemetry/auto-instrumentations-node",
    "@opentelemetry/instrumentation",
    "@opentelemetry/instrumentation-http",
    "@opentelemetry/instrumentation-express",
    "@opentelemetry/exporter-trace-otlp-http",
    "@opentelemetry/exporter-trace-otlp-grpc",
    "@opentelemetry/exporter-trace-otlp-proto",
    "@opentelemetry/exporter-jaeger",
    "@opentelemetry/exporter-zipkin",
    "jaeger-client",
    "zipkin",
    "zipkin-transport-http",
    "zipkin-instrumentation-express",
)


def parse_package_json(repo_dir: Path) -> Optional[dict]:
    """Parse package.json in repo_dir.

    Returns None when the file is absent. Raises ManifestError when it
    exists but is unreadable, not valid JSON, or not a JSON object.
    """
    path = repo_dir / MANIFEST
    if not path.exists():
        return None

    text = read_manifest_text(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(path, "top-level value must be an object")
    return data


def parse_version_constraint(constraint: str) -> str:
    """Extract the major version from a semver constraint.

    Takes the first number found: ">=18" -> "18", "^20.0.0" -> "20",
    "20.x" -> "20", ">=18.0.0 <21.0.0" -> "18".
    """
    match = _VERSION_RE.search(constraint)
    if match:
        return match.group(0)
    return DEFAULT_VERSION


class NodeDetector(Detector):
    """Detects Node.js projects from package.json."""

    name = LANGUAGE_NODE
    manifest_names = (MANIFEST,)

    def detect(self, path: Path) -> Optional[Detection]:
        repo_dir = Path(path)
        pkg = parse_package_json(repo_dir)
        if pkg is None:
            return None

        deps = _merged_deps(pkg)
        scripts = _dict_field(pkg, "scripts")
        engine = _node_engine(pkg)

        detection = Detection(
            language=LANGUAGE_NODE,
            version=parse_version_constraint(engine) if engine else DEFAULT_VERSION,
            confidence=_calculate_confidence(pkg, engine, deps),
        )

        for service, packages in SERVICE_INDICATORS:
            if any(dep in packages for dep in deps):
                detection.add_service(service)

        _detect_logging(detection, deps)
        _detect_queue(detection, deps, scripts)
        _detect_file_upload(detection, deps, repo_dir)
        _detect_metrics(detection, deps)
        _detect_tracing(detection, deps)
        detection.vscode_extensions = _vscode_extensions(deps)

        logger.debug(
            "Node detection: version=%s deps=%d confidence=%.2f",
            detection.version,
            len(deps),
            detection.confidence,
        )
        return detection


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _dict_field(pkg: dict, key: str) -> dict:
    value = pkg.get(key)
    return value if isinstance(value, dict) else {}


def _merged_deps(pkg: dict) -> dict:
    """Union of dependencies and devDependencies, keyed by package name."""
    return {**_dict_field(pkg, "dependencies"), **_dict_field(pkg, "devDependencies")}


def _node_engine(pkg: dict) -> str:
    engine = _dict_field(pkg, "engines").get("node")
    return engine if isinstance(engine, str) else ""


def _calculate_confidence(pkg: dict, engine: str, deps: dict) -> float:
    confidence = 0.5  # package.json exists
    if engine:
        confidence += 0.3
    if pkg.get("name"):
        confidence += 0.1
    if deps:
        confidence += 0.1
    return clamp_confidence(confidence)


def _detect_logging(detection: Detection, deps: dict) -> None:
    # JSON tier runs first; the text tier only fills an unset format.
    for name in JSON_LOGGERS:
        if name in deps:
            detection.add_logging_library(name)
            detection.log_format = LOG_FORMAT_JSON

    for name in CONFIGURABLE_LOGGERS:
        if name in deps:
            detection.add_logging_library(name)
            if detection.log_format == LOG_FORMAT_UNKNOWN:
                detection.log_format = LOG_FORMAT_TEXT

    for name in REQUEST_LOGGERS:
        if name in deps:
            detection.add_logging_library(name)


def _detect_queue(detection: Detection, deps: dict, scripts: dict) -> None:
    for name in QUEUE_LIBRARIES:
        if name in deps:
            detection.add_queue_library(name)

    if detection.queue_libraries:
        detection.worker_command = find_worker_command(scripts)


def find_worker_command(scripts: dict) -> str:
    """Pick the npm script that starts the worker process.

    Exact names in WORKER_SCRIPTS win in priority order, then the first
    script whose name contains "worker", then DEFAULT_WORKER_COMMAND.
    """
    for script in WORKER_SCRIPTS:
        if script in scripts:
            return f"npm run {script}"

    for script in scripts:
        if "worker" in script.lower():
            return f"npm run {script}"

    return DEFAULT_WORKER_COMMAND


def _detect_file_upload(detection: Detection, deps: dict, repo_dir: Path) -> None:
    for name in UPLOAD_LIBRARIES:
        if name in deps:
            detection.add_file_upload_library(name)

    # No literal fallback here: an empty path means no directory was found.
    if detection.file_upload_libraries:
        detection.upload_path = find_upload_dir(repo_dir, UPLOAD_DIRS)


def _detect_metrics(detection: Detection, deps: dict) -> None:
    for dep, name in METRICS_LIBRARIES:
        if dep in deps:
            detection.add_metrics_library(name)

    if detection.metrics_libraries:
        detection.metrics_port = DEFAULT_METRICS_PORTS[LANGUAGE_NODE]
        detection.metrics_path = DEFAULT_METRICS_PATH


def _detect_tracing(detection: Detection, deps: dict) -> None:
    for name in TRACING_LIBRARIES:
        if name in deps:
            detection.add_tracing_library(name)

    libs = detection.tracing_libraries
    if not libs:
        return
    # OpenTelemetry wins even when a Jaeger or Zipkin exporter is present.
    if any(lib.startswith(OTEL_SCOPE) for lib in libs):
        detection.tracing_protocol = TRACING_OTLP
    elif "jaeger-client" in libs:
        detection.tracing_protocol = TRACING_JAEGER
    elif any(lib.startswith("zipkin") for lib in libs):
        detection.tracing_protocol = TRACING_ZIPKIN


def _vscode_extensions(deps: dict) -> list[str]:
    extensions = ["dbaeumer.vscode-eslint"]
    if "prettier" in deps:
        extensions.append("esbenp.prettier-vscode")
    if any("prisma" in dep for dep in deps):
        append_unique(extensions, "Prisma.prisma")
    return extensions

"""Cargo.toml parser and Rust dependency rule tables.

Uses stdlib tomllib (Python 3.11+) to parse Cargo.toml. Crate names are the
keys of the dependency tables, lower-cased; the values (version strings or
inline tables) are ignored.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dockstart.detector.base import load_toml, string_field, table_get
from dockstart.detector.go.gomod import UPLOAD_DIRS as GO_UPLOAD_DIRS
from dockstart.detector.types import SERVICE_POSTGRES, SERVICE_REDIS

logger = logging.getLogger(__name__)

MANIFEST = "Cargo.toml"

DEFAULT_RUST_VERSION = "1.75"

# Edition -> first stable toolchain that supports it (2021 maps to a
# recent stable rather than 1.56).
EDITION_VERSIONS: dict[str, str] = {
    "2024": "1.85",
    "2021": "1.75",
    "2018": "1.31",
    "2015": "1.0",
}

SERVICE_INDICATORS: tuple[tuple[str, frozenset[str]], ...] = (
    (SERVICE_POSTGRES, frozenset({
        "sqlx", "diesel", "tokio-postgres", "postgres", "deadpool-postgres",
        "sea-orm", "cornucopia",
    })),
    (SERVICE_REDIS, frozenset({
        "redis", "deadpool-redis", "fred", "bb8-redis",
    })),
)

# tracing only produces JSON once a subscriber is installed
TRACING_LOGGER = "tracing"
TRACING_SUBSCRIBER = "tracing-subscriber"

LOG_FACADE = "log"

# log backends that format plain text by default
TEXT_LOGGERS: tuple[str, ...] = (
    "env_logger",
    "pretty_env_logger",
    "log4rs",
    "fern",
    "flexi_logger",
    "simplelog",
)

QUEUE_LIBRARIES: tuple[str, ...] = ("sidekiq", "apalis", "lapin", "faktory")

UPLOAD_LIBRARIES: tuple[str, ...] = ("actix-multipart", "multer", "axum-extra")

WEB_FRAMEWORKS: tuple[str, ...] = ("actix-web", "axum", "rocket")

UPLOAD_DIRS: tuple[str, ...] = GO_UPLOAD_DIRS

METRICS_LIBRARIES: tuple[str, ...] = (
    "prometheus",
    "metrics",
    "metrics-exporter-prometheus",
    "actix-web-prom",
    "axum-prometheus",
    "opentelemetry-prometheus",
)

# Crates that pin the protocol to OTLP even alongside a Jaeger exporter
OTEL_GENERIC_TRACERS: tuple[str, ...] = (
    "opentelemetry",
    "opentelemetry-otlp",
    "opentelemetry_sdk",
    "opentelemetry-sdk",
)
OTEL_JAEGER = "opentelemetry-jaeger"
OTEL_ZIPKIN = "opentelemetry-zipkin"
TRACING_OPENTELEMETRY = "tracing-opentelemetry"

TRACING_LIBRARIES: tuple[str, ...] = OTEL_GENERIC_TRACERS + (
    OTEL_JAEGER,
    OTEL_ZIPKIN,
    TRACING_OPENTELEMETRY,
)


@dataclass
class CargoManifest:
    """The parts of Cargo.toml the detector cares about."""

    name: str = ""
    edition: str = ""
    rust_version: str = ""
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    workspace_dependencies: list[str] = field(default_factory=list)

    @property
    def all_dependencies(self) -> list[str]:
        return self.dependencies + self.dev_dependencies + self.workspace_dependencies


def parse_cargo(repo_dir: Path) -> Optional[CargoManifest]:
    """Parse Cargo.toml in repo_dir.

    Returns None when the file is absent. Raises ManifestError when it
    cannot be read or is not valid TOML.
    """
    path = repo_dir / MANIFEST
    if not path.exists():
        return None

    data = load_toml(path)
    package = table_get(data, "package")

    manifest = CargoManifest(
        name=string_field(package, "name"),
        edition=string_field(package, "edition"),
        rust_version=string_field(package, "rust-version"),
        dependencies=_crate_names(data, "dependencies"),
        dev_dependencies=_crate_names(data, "dev-dependencies"),
        workspace_dependencies=_crate_names(data, "workspace", "dependencies"),
    )

    logger.debug(
        "Parsed Cargo.toml: package=%s edition=%s deps=%d",
        manifest.name or "<none>",
        manifest.edition or "<none>",
        len(manifest.all_dependencies),
    )
    return manifest


def rust_version(manifest: CargoManifest) -> str:
    """rust-version verbatim, else the edition's toolchain, else DEFAULT_RUST_VERSION."""
    if manifest.rust_version:
        return manifest.rust_version
    return EDITION_VERSIONS.get(manifest.edition, DEFAULT_RUST_VERSION)


def _crate_names(data: dict, *keys: str) -> list[str]:
    return [name.lower() for name in table_get(data, *keys)]

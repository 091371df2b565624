"""go.mod parser and Go dependency rule tables.

Parses go.mod with a simple line-by-line parser; no external library needed.
Handles both single-line and multi-line require blocks. Every rule below is a
module path prefix, so versioned paths like github.com/jackc/pgx/v5 match the
unversioned entry.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dockstart.detector.base import read_manifest_text
from dockstart.detector.types import SERVICE_POSTGRES, SERVICE_REDIS

logger = logging.getLogger(__name__)

MANIFEST = "go.mod"

DEFAULT_GO_VERSION = "1.21"

_MODULE_RE = re.compile(r"^module\s+(.+)$")
_GO_VERSION_RE = re.compile(r"^go\s+(\d+\.\d+)")
_REQUIRE_RE = re.compile(r"^([a-zA-Z0-9._/-]+)\s+v")
_MAJOR_SUFFIX_RE = re.compile(r"^v\d+$")

SERVICE_INDICATORS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (SERVICE_POSTGRES, (
        "github.com/jackc/pgx",
        "github.com/lib/pq",
        "gorm.io/driver/postgres",
        "github.com/go-pg/pg",
        "entgo.io/ent",
    )),
    (SERVICE_REDIS, (
        "github.com/redis/go-redis",
        "github.com/go-redis/redis",
        "github.com/gomodule/redigo",
    )),
)

# Maps module path prefix to canonical logger name.
JSON_LOGGERS: tuple[tuple[str, str], ...] = (
    ("go.uber.org/zap", "zap"),
    ("github.com/rs/zerolog", "zerolog"),
    ("log/slog", "slog"),
    ("golang.org/x/exp/slog", "slog"),
)

TEXT_LOGGERS: tuple[tuple[str, str], ...] = (
    ("github.com/sirupsen/logrus", "logrus"),
    ("github.com/apex/log", "apex-log"),
    ("github.com/inconshreveable/log15", "log15"),
    ("github.com/go-kit/log", "go-kit-log"),
    ("github.com/hashicorp/go-hclog", "hclog"),
)

QUEUE_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("github.com/hibiken/asynq", "asynq"),
    ("github.com/RichardKnop/machinery", "machinery"),
    ("github.com/gocraft/work", "gocraft-work"),
    ("github.com/adjust/rmq", "rmq"),
    ("github.com/gocelery/gocelery", "gocelery"),
)

UPLOAD_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("github.com/gin-contrib/static", "gin-static"),
    ("github.com/h2non/filetype", "filetype"),
    ("github.com/gabriel-vasile/mimetype", "mimetype"),
)

# Web frameworks with built-in multipart handling
WEB_FRAMEWORKS: tuple[str, ...] = (
    "github.com/gin-gonic/gin",
    "github.com/labstack/echo",
    "github.com/gofiber/fiber",
    "github.com/go-chi/chi",
    "github.com/gorilla/mux",
)

UPLOAD_DIRS: tuple[str, ...] = (
    "uploads",
    "upload",
    "files",
    "static/uploads",
    "public/uploads",
    "assets/uploads",
)

METRICS_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("github.com/prometheus/client_golang", "prometheus-client"),
    ("github.com/prometheus/promauto", "promauto"),
    ("github.com/VictoriaMetrics/metrics", "victoriametrics"),
    ("go.opentelemetry.io/otel/exporters/prometheus", "opentelemetry-prometheus"),
)

# Metrics exporters living under a tracing prefix
TRACING_EXCLUDED: tuple[str, ...] = (
    "go.opentelemetry.io/otel/exporters/prometheus",
)

TRACING_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("go.opentelemetry.io/otel", "go.opentelemetry.io/otel"),
    ("go.opentelemetry.io/contrib", "go.opentelemetry.io/contrib"),
    ("github.com/uber/jaeger-client-go", "github.com/uber/jaeger-client-go"),
    ("github.com/openzipkin/zipkin-go", "github.com/openzipkin/zipkin-go"),
)


@dataclass
class GoModule:
    """The parts of go.mod the detector cares about."""

    module: str = ""
    go_version: str = DEFAULT_GO_VERSION
    requires: list[str] = field(default_factory=list)


def parse_gomod(repo_dir: Path) -> Optional[GoModule]:
    """Parse go.mod in repo_dir.

    Returns None when go.mod is absent. Raises ManifestError when it
    cannot be read. Unrecognised lines are ignored.
    """
    path = repo_dir / MANIFEST
    if not path.exists():
        return None

    text = read_manifest_text(path)
    mod = GoModule()
    in_require_block = False

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue

        match = _MODULE_RE.match(stripped)
        if match:
            mod.module = match.group(1).strip()
            continue

        match = _GO_VERSION_RE.match(stripped)
        if match:
            mod.go_version = match.group(1)
            continue

        if stripped.startswith("require ("):
            in_require_block = True
            continue
        if stripped == ")" and in_require_block:
            in_require_block = False
            continue

        if stripped.startswith("require ") and "(" not in stripped:
            # Single-line require: "require github.com/foo/bar v1.0.0"
            parts = stripped.split()
            if len(parts) >= 2:
                mod.requires.append(parts[1])
            continue

        if in_require_block:
            # "github.com/foo/bar v1.0.0 // indirect"
            match = _REQUIRE_RE.match(stripped)
            if match:
                mod.requires.append(match.group(1))

    logger.debug(
        "Parsed go.mod: module=%s go=%s requires=%d",
        mod.module or "<none>",
        mod.go_version,
        len(mod.requires),
    )
    return mod


def binary_name(module: str) -> str:
    """Last path segment of a module path, used as the built binary's name.

    A trailing major-version segment is skipped, so github.com/user/app/v2
    builds ./app. Falls back to "app" when no module is declared.
    """
    segments = [s for s in module.split("/") if s]
    if len(segments) > 1 and _MAJOR_SUFFIX_RE.match(segments[-1]):
        segments = segments[:-1]
    return segments[-1] if segments else "app"


def has_prefix(requires: list[str], prefix: str) -> bool:
    return any(req.startswith(prefix) for req in requires)

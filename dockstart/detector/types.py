"""Shared types for the detector module.

Every detector produces a Detection, which carries the detected runtime,
backing services and auxiliary library usage along with a confidence score.
The generator reads it through the helper predicates below to decide which
template fragments to render.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

# Language identifiers
LANGUAGE_NODE = "node"
LANGUAGE_GO = "go"
LANGUAGE_PYTHON = "python"
LANGUAGE_RUST = "rust"

# Log formats
LOG_FORMAT_JSON = "json"
LOG_FORMAT_TEXT = "text"
LOG_FORMAT_UNKNOWN = "unknown"

# Tracing wire protocols
TRACING_OTLP = "otlp"
TRACING_JAEGER = "jaeger"
TRACING_ZIPKIN = "zipkin"

# Backing services
SERVICE_POSTGRES = "postgres"
SERVICE_REDIS = "redis"

# Upload capability inferred from a framework plus an uploads directory
MULTIPART_SENTINEL = "multipart"

DEFAULT_METRICS_PATH = "/metrics"

# Default app port per language, used as the metrics port fallback.
DEFAULT_METRICS_PORTS: dict[str, int] = {
    LANGUAGE_NODE: 3000,
    LANGUAGE_GO: 8080,
    LANGUAGE_PYTHON: 8000,
    LANGUAGE_RUST: 8080,
}
FALLBACK_METRICS_PORT = 3000


@dataclass
class Detection:
    """Detection result for one ecosystem in a project directory.

    List fields are ordered and never hold duplicates; use the add_*
    helpers rather than appending directly. Derived fields (log_format,
    worker_command, metrics_port/metrics_path, tracing_protocol) are only
    set when the matching library list is non-empty. upload_path is the
    exception: it can come from directory probing alone.
    """

    language: str
    version: str
    services: list[str] = field(default_factory=list)
    confidence: float = 0.0  # 0.0 to 1.0

    logging_libraries: list[str] = field(default_factory=list)
    log_format: str = LOG_FORMAT_UNKNOWN

    queue_libraries: list[str] = field(default_factory=list)
    worker_command: str = ""

    file_upload_libraries: list[str] = field(default_factory=list)
    upload_path: str = ""

    metrics_libraries: list[str] = field(default_factory=list)
    metrics_port: int = 0
    metrics_path: str = ""

    tracing_libraries: list[str] = field(default_factory=list)
    tracing_protocol: str = ""

    vscode_extensions: list[str] = field(default_factory=list)

    # -- services ---------------------------------------------------------

    def has_service(self, service: str) -> bool:
        return service in self.services

    def add_service(self, service: str) -> None:
        if not self.has_service(service):
            self.services.append(service)

    # -- logging ----------------------------------------------------------

    def has_logging_library(self, library: str) -> bool:
        return library in self.logging_libraries

    def add_logging_library(self, library: str) -> None:
        if not self.has_logging_library(library):
            self.logging_libraries.append(library)

    def has_structured_logging(self) -> bool:
        return len(self.logging_libraries) > 0

    # -- queues -----------------------------------------------------------

    def has_queue_library(self, library: str) -> bool:
        return library in self.queue_libraries

    def add_queue_library(self, library: str) -> None:
        if not self.has_queue_library(library):
            self.queue_libraries.append(library)

    def needs_worker(self) -> bool:
        """True when a queue library was found and a worker process is needed."""
        return len(self.queue_libraries) > 0

    # -- file uploads -----------------------------------------------------

    def has_file_upload_library(self, library: str) -> bool:
        return library in self.file_upload_libraries

    def add_file_upload_library(self, library: str) -> None:
        if not self.has_file_upload_library(library):
            self.file_upload_libraries.append(library)

    def needs_file_processor(self) -> bool:
        return len(self.file_upload_libraries) > 0

    # -- metrics ----------------------------------------------------------

    def has_metrics_library(self, library: str) -> bool:
        return library in self.metrics_libraries

    def add_metrics_library(self, library: str) -> None:
        if not self.has_metrics_library(library):
            self.metrics_libraries.append(library)

    def needs_metrics(self) -> bool:
        return len(self.metrics_libraries) > 0

    def get_metrics_port(self) -> int:
        """Return the metrics port, falling back to the language's app port."""
        if self.metrics_port:
            return self.metrics_port
        return DEFAULT_METRICS_PORTS.get(self.language, FALLBACK_METRICS_PORT)

    def get_metrics_path(self) -> str:
        return self.metrics_path or DEFAULT_METRICS_PATH

    # -- tracing ----------------------------------------------------------

    def has_tracing_library(self, library: str) -> bool:
        return library in self.tracing_libraries

    def add_tracing_library(self, library: str) -> None:
        if not self.has_tracing_library(library):
            self.tracing_libraries.append(library)

    def needs_tracing(self) -> bool:
        return len(self.tracing_libraries) > 0

    def get_tracing_protocol(self) -> str:
        """Return the tracing protocol, defaulting to OTLP when none was inferred."""
        return self.tracing_protocol or TRACING_OTLP

    def to_dict(self) -> dict:
        data = asdict(self)
        data["confidence"] = round(self.confidence, 2)
        return data


@dataclass
class Project:
    """A fully analyzed project directory.

    detection is the highest-confidence result (None when nothing matched);
    detections holds every result, ranked.
    """

    path: Path
    name: str
    detection: Optional[Detection] = None
    detections: list[Detection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "name": self.name,
            "detection": self.detection.to_dict() if self.detection else None,
            "detections": [d.to_dict() for d in self.detections],
        }

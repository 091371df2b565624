"""dockstart: detect a project's stack for dev-container scaffolding."""

from dockstart.detector import (
    Detection,
    Detector,
    DetectorRegistry,
    ManifestError,
    Project,
    default_registry,
)

__version__ = "0.1.0"

__all__ = [
    "Detection",
    "Detector",
    "DetectorRegistry",
    "ManifestError",
    "Project",
    "default_registry",
]

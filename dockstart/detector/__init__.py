"""Detector module for inferring a project's runtime and auxiliary services.

Public API:
    default_registry(settings=None) -> DetectorRegistry
    DetectorRegistry.detect_all(path) -> list[Detection]
    DetectorRegistry.detect_primary(path) -> Detection | None
    DetectorRegistry.analyze(path) -> Project
"""

from dockstart.detector.base import Detector, ManifestError
from dockstart.detector.go import GoDetector
from dockstart.detector.package_json import NodeDetector
from dockstart.detector.python import PythonDetector
from dockstart.detector.registry import DetectorRegistry, default_registry
from dockstart.detector.rust import RustDetector
from dockstart.detector.types import Detection, Project

__all__ = [
    "Detection",
    "Detector",
    "DetectorRegistry",
    "GoDetector",
    "ManifestError",
    "NodeDetector",
    "Project",
    "PythonDetector",
    "RustDetector",
    "default_registry",
]

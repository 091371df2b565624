"""Detector registry: runs every ecosystem detector and ranks the results.

Detection flow:
1. Every registered detector checks the directory for its own manifest.
2. Detectors whose manifest is absent return None and are skipped.
3. A detector that fails on a broken manifest is logged and dropped, so
   one bad file never hides the other ecosystems.
4. Results are sorted by confidence, highest first. Ties keep
   registration order (default: Node, Go, Python, Rust).
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from dockstart.core.config import Settings
from dockstart.detector.base import Detector, ManifestError
from dockstart.detector.go import GoDetector
from dockstart.detector.package_json import NodeDetector
from dockstart.detector.python import PythonDetector
from dockstart.detector.rust import RustDetector
from dockstart.detector.types import Detection, Project

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Ordered collection of detectors."""

    def __init__(self, detectors: Optional[Iterable[Detector]] = None) -> None:
        if detectors is None:
            detectors = default_detectors()
        self._detectors: list[Detector] = list(detectors)

    @property
    def detectors(self) -> tuple[Detector, ...]:
        return tuple(self._detectors)

    def register(self, detector: Detector) -> None:
        """Append a detector; it runs after every detector already registered."""
        self._detectors.append(detector)

    def detect_all(self, path: Path) -> list[Detection]:
        """Run every detector against path and return the matches, best first."""
        path = Path(path)
        detections: list[Detection] = []

        for detector in self._detectors:
            try:
                detection = detector.detect(path)
            except (ManifestError, OSError) as exc:
                logger.warning("Detector %s failed on %s: %s", detector.name, path, exc)
                continue

            if detection is None:
                logger.debug("Detector %s: no manifest in %s", detector.name, path)
                continue

            logger.debug(
                "Detector %s matched: version=%s confidence=%.2f",
                detector.name,
                detection.version,
                detection.confidence,
            )
            detections.append(detection)

        # sorted() is stable, so equal confidences keep registration order
        detections = sorted(detections, key=lambda d: d.confidence, reverse=True)
        if detections:
            logger.info(
                "Detected %s in %s",
                ", ".join(f"{d.language} ({d.confidence:.2f})" for d in detections),
                path,
            )
        else:
            logger.info("No supported project detected in %s", path)
        return detections

    def detect_primary(self, path: Path) -> Optional[Detection]:
        """Return the highest-confidence detection, or None."""
        detections = self.detect_all(path)
        return detections[0] if detections else None

    def analyze(self, path: Path) -> Project:
        """Run all detectors and wrap the ranked results in a Project."""
        resolved = Path(path).resolve()
        detections = self.detect_all(resolved)
        return Project(
            path=resolved,
            name=resolved.name,
            detection=detections[0] if detections else None,
            detections=detections,
        )


def default_detectors() -> list[Detector]:
    return [NodeDetector(), GoDetector(), PythonDetector(), RustDetector()]


def default_registry(settings: Optional[Settings] = None) -> DetectorRegistry:
    """Build the default registry, leaving out detectors disabled in settings."""
    disabled = set(settings.disabled_detectors) if settings else set()
    detectors = [d for d in default_detectors() if d.name not in disabled]
    if disabled:
        logger.debug("Disabled detectors: %s", ", ".join(sorted(disabled)))
    return DetectorRegistry(detectors)

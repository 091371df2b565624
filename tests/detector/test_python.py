"""Tests for the Python ecosystem detector.

All tests use in-memory fixtures written to tmp_path; no real repos are cloned.
"""

from pathlib import Path

import pytest

from dockstart.detector.base import ManifestError
from dockstart.detector.python import PythonDetector, parse_version_constraint
from dockstart.detector.python.pyproject import extract_package_name, parse_pyproject
from dockstart.detector.python.requirements import parse_requirements


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pyproject(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "pyproject.toml"
    p.write_text(content, encoding="utf-8")
    return tmp_path


def _requirements(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "requirements.txt"
    p.write_text(content, encoding="utf-8")
    return tmp_path


def _deps(*deps: str) -> str:
    quoted = ", ".join(f'"{d}"' for d in deps)
    return f'[project]\nname = "myapp"\nrequires-python = ">=3.12"\ndependencies = [{quoted}]\n'


FULL_PYPROJECT = """
[project]
name = "myapp"
requires-python = ">=3.10"
dependencies = ["fastapi>=0.100", "psycopg2-binary", "redis>=4.0.0"]

[project.optional-dependencies]
dev = ["pytest>=8"]
"""

POETRY_PYPROJECT = """
[tool.poetry]
name = "poetry-app"

[tool.poetry.dependencies]
python = "^3.11"
celery = "^5.3"

[tool.poetry.dev-dependencies]
pytest = "^8"

[tool.poetry.group.docs.dependencies]
mkdocs = "^1.5"
"""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestExtractPackageName:
    @pytest.mark.parametrize(
        "dep,expected",
        [
            ("redis>=4.0.0", "redis"),
            ("psycopg2-binary", "psycopg2-binary"),
            ("uvicorn[standard]>=0.23", "uvicorn"),
            ("Django==4.2", "django"),
            ("python_json_logger", "python_json_logger"),
        ],
    )
    def test_extract(self, dep, expected):
        assert extract_package_name(dep) == expected


class TestParseVersionConstraint:
    @pytest.mark.parametrize(
        "constraint,expected",
        [
            (">=3.10", "3.10"),
            ("^3.11", "3.11"),
            (">=3.9,<4.0", "3.9"),
            ("~=3.10.0", "3.10"),
            ("invalid", "3.11"),
        ],
    )
    def test_major_minor(self, constraint, expected):
        assert parse_version_constraint(constraint) == expected


class TestParsePyproject:
    def test_missing_file_returns_none(self, tmp_path):
        assert parse_pyproject(tmp_path) is None

    def test_collects_project_and_optional_deps(self, tmp_path):
        project = parse_pyproject(_pyproject(tmp_path, FULL_PYPROJECT))
        assert project.name == "myapp"
        assert project.requires_python == ">=3.10"
        assert project.dependencies == ["fastapi", "psycopg2-binary", "redis", "pytest"]

    def test_poetry_layout(self, tmp_path):
        project = parse_pyproject(_pyproject(tmp_path, POETRY_PYPROJECT))
        assert project.app_name == "poetry-app"
        assert project.poetry_python == "^3.11"
        assert "python" not in project.dependencies
        assert set(project.dependencies) == {"celery", "pytest", "mkdocs"}

    def test_invalid_toml_raises(self, tmp_path):
        _pyproject(tmp_path, "[project\nname = ")
        with pytest.raises(ManifestError):
            parse_pyproject(tmp_path)

    def test_non_list_dependencies_raises(self, tmp_path):
        _pyproject(tmp_path, '[project]\ndependencies = "fastapi"\n')
        with pytest.raises(ManifestError):
            parse_pyproject(tmp_path)


class TestParseRequirements:
    def test_missing_file_returns_none(self, tmp_path):
        assert parse_requirements(tmp_path) is None

    def test_skips_comments_flags_and_blank_lines(self, tmp_path):
        _requirements(tmp_path, """\
# production deps
-r base.txt
--index-url https://example.com/simple

Flask==3.0.0  # web
gunicorn>=21
""")
        assert parse_requirements(tmp_path) == ["flask", "gunicorn"]


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestPythonDetection:
    def test_not_a_python_project(self, tmp_path):
        assert PythonDetector().detect(tmp_path) is None

    def test_full_pyproject(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, FULL_PYPROJECT))
        assert d.language == "python"
        assert d.version == "3.10"
        assert d.services == ["postgres", "redis"]
        assert d.confidence == pytest.approx(1.0)
        assert d.vscode_extensions == ["ms-python.python", "ms-python.vscode-pylance"]

    def test_minimal_pyproject(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, '[build-system]\nrequires = ["setuptools"]\n'))
        assert d.version == "3.11"
        assert d.confidence == pytest.approx(0.7)

    def test_poetry_python_constraint(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, POETRY_PYPROJECT))
        assert d.version == "3.11"
        assert d.confidence == pytest.approx(0.9)

    def test_poetry_python_key_counts_as_dependency(self, tmp_path):
        _pyproject(tmp_path, '[tool.poetry.dependencies]\npython = "^3.12"\n')
        d = PythonDetector().detect(tmp_path)
        assert d.version == "3.12"
        assert d.confidence == pytest.approx(0.8)

    def test_requires_python_and_poetry_name(self, tmp_path):
        _pyproject(tmp_path, '[project]\nrequires-python = ">=3.11"\n\n[tool.poetry]\nname = "app"\n')
        assert PythonDetector().detect(tmp_path).confidence == pytest.approx(0.9)

    def test_requirements_fallback(self, tmp_path):
        d = PythonDetector().detect(_requirements(tmp_path, "django>=4.2\ncelery\n"))
        assert d.version == "3.11"
        assert d.confidence == pytest.approx(0.6)
        assert d.services == ["postgres", "redis"]

    def test_pyproject_takes_precedence(self, tmp_path):
        _pyproject(tmp_path, _deps("fastapi"))
        _requirements(tmp_path, "redis\n")
        d = PythonDetector().detect(tmp_path)
        assert d.version == "3.12"
        assert d.services == []

    def test_broken_pyproject_raises(self, tmp_path):
        _pyproject(tmp_path, "not = [valid")
        with pytest.raises(ManifestError):
            PythonDetector().detect(tmp_path)


class TestPythonServices:
    def test_prefix_match(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("django-environ")))
        assert d.services == ["postgres"]

    def test_unrelated_prefix_does_not_match(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("redislite")))
        assert d.services == []

    def test_services_follow_dependency_order(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("redis", "psycopg2")))
        assert d.services == ["redis", "postgres"]


class TestPythonLogging:
    def test_structlog_is_json(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("structlog")))
        assert d.logging_libraries == ["structlog"]
        assert d.log_format == "json"

    def test_loguru_is_text(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("loguru")))
        assert d.log_format == "text"

    def test_utilities_recorded_without_format(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("rich")))
        assert d.logging_libraries == ["rich"]
        assert d.log_format == "unknown"

    def test_requirements_structlog_and_coloredlogs(self, tmp_path):
        _requirements(tmp_path, "structlog\ncoloredlogs\nfastapi\n")
        d = PythonDetector().detect(tmp_path)
        assert d.log_format == "json"
        assert d.has_logging_library("structlog")
        assert d.has_logging_library("coloredlogs")

    def test_pythonjsonlogger_alias(self, tmp_path):
        d = PythonDetector().detect(_requirements(tmp_path, "pythonjsonlogger\n"))
        assert d.logging_libraries == ["python-json-logger"]

    def test_libraries_follow_dependency_order(self, tmp_path):
        d = PythonDetector().detect(_requirements(tmp_path, "loguru\nrich\nstructlog\n"))
        assert d.logging_libraries == ["loguru", "rich", "structlog"]
        assert d.log_format == "json"


class TestPythonQueue:
    def test_celery_uses_project_name(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("celery[redis]>=5.3")))
        assert d.queue_libraries == ["celery"]
        assert d.worker_command == "celery -A myapp worker"

    def test_poetry_name_used(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, POETRY_PYPROJECT))
        assert d.worker_command == "celery -A poetry-app worker"

    def test_requirements_default_app_name(self, tmp_path):
        d = PythonDetector().detect(_requirements(tmp_path, "dramatiq\n"))
        assert d.worker_command == "dramatiq app"

    def test_priority_not_dependency_order(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("rq", "dramatiq")))
        assert d.queue_libraries == ["rq", "dramatiq"]
        assert d.worker_command == "dramatiq myapp"

    @pytest.mark.parametrize(
        "library,command",
        [
            ("rq", "rq worker"),
            ("huey", "huey_consumer myapp.huey"),
            ("arq", "arq myapp.WorkerSettings"),
            ("taskiq", "taskiq worker myapp:broker"),
        ],
    )
    def test_worker_commands(self, tmp_path, library, command):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps(library)))
        assert d.worker_command == command


class TestPythonFileUpload:
    def test_explicit_library_with_media_dir(self, tmp_path):
        (tmp_path / "media").mkdir()
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("fastapi", "python-multipart")))
        assert d.file_upload_libraries == ["python-multipart"]
        assert d.upload_path == "media"

    def test_framework_and_dir_yields_sentinel(self, tmp_path):
        (tmp_path / "uploads").mkdir()
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("flask")))
        assert d.file_upload_libraries == ["multipart"]
        assert d.upload_path == "uploads"

    def test_framework_without_dir(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("flask")))
        assert d.file_upload_libraries == []
        assert d.upload_path == ""


class TestPythonMetrics:
    def test_underscore_normalised(self, tmp_path):
        d = PythonDetector().detect(_requirements(tmp_path, "prometheus_client\nprometheus-client\n"))
        assert d.metrics_libraries == ["prometheus-client"]
        assert d.metrics_port == 8000
        assert d.metrics_path == "/metrics"

    def test_otel_exporter_renamed(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("opentelemetry-exporter-prometheus")))
        assert d.metrics_libraries == ["opentelemetry-prometheus"]
        assert d.tracing_libraries == []


class TestPythonTracing:
    def test_sdk_and_api(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("opentelemetry-sdk", "opentelemetry-api")))
        assert d.tracing_libraries == ["opentelemetry-sdk", "opentelemetry-api"]
        assert d.tracing_protocol == "otlp"

    def test_instrumentation_prefix(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("opentelemetry-instrumentation-fastapi")))
        assert d.tracing_libraries == ["opentelemetry-instrumentation-fastapi"]
        assert d.tracing_protocol == "otlp"

    def test_jaeger_client(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("jaeger-client")))
        assert d.tracing_protocol == "jaeger"

    def test_py_zipkin(self, tmp_path):
        d = PythonDetector().detect(_pyproject(tmp_path, _deps("py-zipkin")))
        assert d.tracing_libraries == ["py-zipkin"]
        assert d.tracing_protocol == "zipkin"

    def test_otlp_wins_over_jaeger_exporter(self, tmp_path):
        d = PythonDetector().detect(
            _pyproject(tmp_path, _deps("opentelemetry-exporter-jaeger", "opentelemetry-sdk"))
        )
        assert d.tracing_protocol == "otlp"

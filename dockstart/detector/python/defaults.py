"""Rule tables and defaults for Python project detection.

Package names are matched lower-cased, after stripping version
specifiers and extras.
"""

from dockstart.detector.types import SERVICE_POSTGRES, SERVICE_REDIS

# Current stable CPython when no constraint is declared
DEFAULT_PYTHON_VERSION = "3.11"

# Used in worker commands when neither [project] nor [tool.poetry] names the app
DEFAULT_APP_NAME = "app"

# Matched exactly or as "<name>-" prefix, so django-environ counts as django.
SERVICE_INDICATORS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (SERVICE_POSTGRES, (
        "psycopg2", "psycopg2-binary", "psycopg", "asyncpg", "sqlalchemy",
        "django", "databases", "tortoise-orm", "piccolo",
    )),
    (SERVICE_REDIS, (
        "redis", "aioredis", "redis-py", "celery", "rq", "dramatiq",
    )),
)

# Maps package name to canonical logger name.
JSON_LOGGERS: tuple[tuple[str, str], ...] = (
    ("structlog", "structlog"),
    ("python-json-logger", "python-json-logger"),
    ("pythonjsonlogger", "python-json-logger"),
    ("json-logging", "json-logging"),
    ("eliot", "eliot"),
)

TEXT_LOGGERS: tuple[tuple[str, str], ...] = (
    ("loguru", "loguru"),
    ("logbook", "logbook"),
    ("twiggy", "twiggy"),
)

# Formatters and handlers; recorded without changing the format
LOGGING_UTILITIES: tuple[str, ...] = ("coloredlogs", "rich")

QUEUE_LIBRARIES: tuple[str, ...] = (
    "celery", "rq", "dramatiq", "huey", "arq", "taskiq",
)

# Worker start commands, highest priority first. {app} is the project name.
WORKER_COMMANDS: tuple[tuple[str, str], ...] = (
    ("celery", "celery -A {app} worker"),
    ("dramatiq", "dramatiq {app}"),
    ("rq", "rq worker"),
    ("huey", "huey_consumer {app}.huey"),
    ("arq", "arq {app}.WorkerSettings"),
    ("taskiq", "taskiq worker {app}:broker"),
)

UPLOAD_LIBRARIES: tuple[str, ...] = (
    "python-multipart", "aiofiles", "starlette", "werkzeug",
)

WEB_FRAMEWORKS: tuple[str, ...] = (
    "fastapi", "flask", "django", "starlite", "litestar",
)

UPLOAD_DIRS: tuple[str, ...] = (
    "uploads",
    "upload",
    "files",
    "media",
    "media/uploads",
    "static/uploads",
)

# Matched after normalising "_" to "-".
METRICS_LIBRARIES: tuple[tuple[str, str], ...] = (
    ("prometheus-client", "prometheus-client"),
    ("prometheus-fastapi-instrumentator", "prometheus-fastapi-instrumentator"),
    ("prometheus-flask-exporter", "prometheus-flask-exporter"),
    ("django-prometheus", "django-prometheus"),
    ("starlette-prometheus", "starlette-prometheus"),
    ("opentelemetry-exporter-prometheus", "opentelemetry-prometheus"),
    ("aioprometheus", "aioprometheus"),
)

# Tracing packages by the protocol they imply. Each entry is an exact
# package name or, when it ends with "-", a package name prefix.
OTLP_TRACERS: tuple[str, ...] = (
    "opentelemetry-api",
    "opentelemetry-sdk",
    "opentelemetry-exporter-otlp",
    "opentelemetry-exporter-otlp-",
    "opentelemetry-instrumentation",
    "opentelemetry-instrumentation-",
    "opentelemetry-distro",
)

JAEGER_TRACERS: tuple[str, ...] = (
    "opentelemetry-exporter-jaeger",
    "opentelemetry-exporter-jaeger-",
    "jaeger-client",
)

ZIPKIN_TRACERS: tuple[str, ...] = (
    "opentelemetry-exporter-zipkin",
    "opentelemetry-exporter-zipkin-",
    "py-zipkin",
)

VSCODE_EXTENSIONS: tuple[str, ...] = (
    "ms-python.python",
    "ms-python.vscode-pylance",
)

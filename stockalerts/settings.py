from pathlib import Path
import os

from dotenv import load_dotenv

# Carga de variables de entorno temprana
load_dotenv()

# --------------------------------------------------------------------------------------
# Paths básicos
# --------------------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# --------------------------------------------------------------------------------------
# Claves y modo
# --------------------------------------------------------------------------------------
DEBUG = os.getenv("DEBUG", "0") in ("1", "true", "True")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    if DEBUG:
        import warnings
        from django.core.management.utils import get_random_secret_key

        SECRET_KEY = get_random_secret_key()
        warnings.warn("SECRET_KEY no configurada. Usando clave temporal.", RuntimeWarning)
    else:
        raise RuntimeError("SECRET_KEY no configurada. Define la variable de entorno antes de iniciar la aplicación.")


# Helper para listas (admite coma o espacio)
def _split_env(name, default=""):
    raw = os.getenv(name, default)
    return [x.strip() for x in raw.replace(",", " ").split() if x.strip()]


def _int_env(name, default):
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        raise RuntimeError(f"{name} debe ser un entero.")


ALLOWED_HOSTS = _split_env("ALLOWED_HOSTS", "localhost 127.0.0.1")
CORS_ALLOWED_ORIGINS = _split_env(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000 http://127.0.0.1:3000",
)

if not DEBUG:
    if not os.getenv("ALLOWED_HOSTS"):
        raise RuntimeError("ALLOWED_HOSTS debe definirse en producción.")
    if not os.getenv("CORS_ALLOWED_ORIGINS"):
        raise RuntimeError(
            "CORS_ALLOWED_ORIGINS debe estar configurado en producción. "
            "Define los orígenes permitidos en el archivo .env."
        )

# --------------------------------------------------------------------------------------
# Apps
# --------------------------------------------------------------------------------------
INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Terceros
    "rest_framework",
    "corsheaders",

    # Apps del proyecto
    "core",
    "inventory",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    # CORS antes de CommonMiddleware
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "core.middleware.RequestIDMiddleware",
    "core.middleware.PerformanceLoggingMiddleware",
]

# --------------------------------------------------------------------------------------
# Performance Monitoring
# --------------------------------------------------------------------------------------
SLOW_REQUEST_THRESHOLD = float(os.getenv("SLOW_REQUEST_THRESHOLD", "1.0"))  # segundos

ROOT_URLCONF = "stockalerts.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "stockalerts.wsgi.application"

# --------------------------------------------------------------------------------------
# Base de datos
# --------------------------------------------------------------------------------------
DB_ENGINE = os.getenv("DB_ENGINE", "postgresql")

if DB_ENGINE == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("DB_NAME", str(BASE_DIR / "stockalerts.sqlite3")),
            "OPTIONS": {
                # BEGIN IMMEDIATE: cada transacción toma el bloqueo de escritura al iniciar
                "transaction_mode": "IMMEDIATE",
                "timeout": _int_env("DB_SQLITE_TIMEOUT", 20),
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DB_NAME", "stockalerts"),
            "USER": os.getenv("DB_USER", "postgres"),
            "PASSWORD": os.getenv("DB_PASSWORD", ""),
            "HOST": os.getenv("DB_HOST", "127.0.0.1"),
            "PORT": os.getenv("DB_PORT", "5432"),
            "CONN_MAX_AGE": _int_env("DB_CONN_MAX_AGE", 60),
            "OPTIONS": {
                "sslmode": os.getenv("DB_SSLMODE", "require" if not DEBUG else "prefer"),
                "connect_timeout": 10,
            },
        }
    }

    if not DEBUG and not os.getenv("DB_PASSWORD"):
        raise RuntimeError("DB_PASSWORD debe estar configurado en producción.")

# --------------------------------------------------------------------------------------
# Alertas de stock
# --------------------------------------------------------------------------------------
STOCK_ALERTS = {
    "DEFAULT_MIN_STOCK_LEVEL": _int_env("STOCK_DEFAULT_MIN_LEVEL", 10),
    # Espera máxima por el bloqueo de un producto antes de responder ConflictRetry
    "LOCK_TIMEOUT_MS": _int_env("STOCK_LOCK_TIMEOUT_MS", 5000),
    # Tiempo máximo de una sentencia dentro de la sección crítica
    "STATEMENT_TIMEOUT_MS": _int_env("STOCK_STATEMENT_TIMEOUT_MS", 15000),
}

# --------------------------------------------------------------------------------------
# DRF
# --------------------------------------------------------------------------------------
REST_FRAMEWORK = {
    # Autenticación fuera de alcance: la API se publica detrás del gateway interno
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.AllowAny",
    ),
    "EXCEPTION_HANDLER": "core.exceptions.drf_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

# --------------------------------------------------------------------------------------
# i18n
# --------------------------------------------------------------------------------------
LANGUAGE_CODE = "es-co"
TIME_ZONE = os.getenv("TIME_ZONE", "America/Bogota")
USE_I18N = True
USE_TZ = True

# --------------------------------------------------------------------------------------
# Static
# --------------------------------------------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# --------------------------------------------------------------------------------------
# Primary key
# --------------------------------------------------------------------------------------
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------------------------------------------------------------------
# CORS/CSRF
# --------------------------------------------------------------------------------------
CSRF_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_SECURE = not DEBUG
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# --------------------------------------------------------------------------------------
# Logging: útil para producción y depuración
# --------------------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{levelname}] {asctime} {name} {process:d} {thread:d} rid={request_id}: {message}",
            "style": "{",
        },
        "simple": {"format": "[{levelname}] {message}", "style": "{"},
    },
    "filters": {
        "sanitize_secrets": {
            "()": "core.logging_filters.SanitizeSecretsFilter",
        },
        "request_id": {
            "()": "core.logging_filters.RequestIDFilter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose" if not DEBUG else "simple",
            "filters": ["sanitize_secrets", "request_id"],
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "stockalerts.log",
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 10,
            "formatter": "verbose",
            "filters": ["sanitize_secrets", "request_id"],
        },
        "error_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "errors.log",
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "verbose",
            "level": "ERROR",
            "filters": ["sanitize_secrets", "request_id"],
        },
    },
    "root": {
        "handlers": ["console", "file", "error_file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django.db.backends": {
            "level": os.getenv("DB_LOG_LEVEL", "WARNING" if not DEBUG else "INFO"),
            "handlers": ["console", "file"],
            "propagate": False,
        },
        "inventory": {
            "level": os.getenv("INVENTORY_LOG_LEVEL", "INFO"),
            "handlers": ["console", "file"],
            "propagate": False,
        },
    },
}

# Crear directorio de logs si no existe
LOG_DIR.mkdir(parents=True, exist_ok=True)

# --------------------------------------------------------------------------------------
# Sentry (opcional)
# --------------------------------------------------------------------------------------
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[DjangoIntegration()],
        traces_sample_rate=float(
            os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        send_default_pii=False,
        environment=os.getenv(
            "SENTRY_ENV", "production" if not DEBUG else "development"),
        release=os.getenv("GIT_COMMIT", "local"),
    )

# --------------------------------------------------------------------------------------
# DRF Browsable API solo en debug
# --------------------------------------------------------------------------------------
if DEBUG:
    REST_FRAMEWORK.setdefault(
        "DEFAULT_RENDERER_CLASSES",
        (
            "rest_framework.renderers.JSONRenderer",
            "rest_framework.renderers.BrowsableAPIRenderer",
        ),
    )
else:
    REST_FRAMEWORK.setdefault(
        "DEFAULT_RENDERER_CLASSES",
        ("rest_framework.renderers.JSONRenderer",),
    )

"""
Django settings for the Maltiese project.

Secrets and deployment switches come from the environment; everything
else has a development default.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("MALTIESE_SECRET_KEY", "django-insecure-maltiese-dev-key")
DEBUG = os.environ.get("MALTIESE_DEBUG", "1") == "1"
ALLOWED_HOSTS = [h for h in os.environ.get("MALTIESE_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "projects",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "maltiese.urls"
WSGI_APPLICATION = "maltiese.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("MALTIESE_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_TZ = True

STATIC_URL = "static/"
MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.environ.get("MALTIESE_MEDIA_ROOT", BASE_DIR / "media"))

# ── Engine ──────────────────────────────────────────────────────────────────

# Trained heads, one .keras file per project
MODELS_ROOT = Path(os.environ.get("MALTIESE_MODELS_ROOT", BASE_DIR / "models"))

# Optional local copy of the MobileNet ImageNet weights
BACKBONE_WEIGHTS_PATH = MODELS_ROOT / "mobilenet_2_5_224_tf_no_top.h5"

# Overrides for training.config.TrainingConfig, e.g. {"epochs": 20}
MALTIESE_TRAINING = {}

# Seconds a prediction request waits for its result
PREDICT_TIMEOUT = 30

# ── Logging ─────────────────────────────────────────────────────────────────

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "training": {
            "handlers": ["console"],
            "level": os.environ.get("MALTIESE_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "projects": {
            "handlers": ["console"],
            "level": os.environ.get("MALTIESE_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

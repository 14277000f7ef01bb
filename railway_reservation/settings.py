"""
Django settings for railway_reservation project.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-change-this-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = []


# Application definition
INSTALLED_APPS = [
    # Third party apps
    'rest_framework',
    # Local apps
    'core',
    'trains',
    'bookings',
]


# Database Configuration
# In-memory SQLite by default: state lives only as long as the process.
# Point RAILWAY_DATABASE at a file to keep it between runs.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('RAILWAY_DATABASE', ':memory:'),
    }
}


# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Asia/Kolkata'
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# REST Framework Configuration
# Serializers are used for input validation only; there is no HTTP surface.
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
}


# Logging
LOG_LEVEL = os.getenv('RAILWAY_LOG_LEVEL', 'ERROR').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'core': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'trains': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'bookings': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}


# Reservation settings
RAILWAY_SEED_FILE = Path(os.getenv('RAILWAY_SEED_FILE', BASE_DIR / 'core' / 'fixtures' / 'seed.json'))

# Six-digit PNRs
RAILWAY_PNR_RANGE = (100000, 999999)

# Menu choice -> train ordering used by "View/Sort Trains"
RAILWAY_SORT_KEYS = {
    1: 'number',
    2: 'fare',
    3: 'name',
}

# Largest value an integer column (train number, seats, PNR) accepts
RAILWAY_MAX_INTEGER = 2147483647

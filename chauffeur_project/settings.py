import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")

# Read DEBUG from environment; defaults to True for local development
DEBUG = os.getenv("DJANGO_DEBUG", "True") == "True"

ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h.strip()]

# CSRF trusted origins: supply a comma-separated list of origins (including scheme)
# e.g. DJANGO_CSRF_TRUSTED_ORIGINS=https://abcd1234.ngrok.io,https://example.com
csrf_origins = os.getenv('DJANGO_CSRF_TRUSTED_ORIGINS', '')
if csrf_origins:
    CSRF_TRUSTED_ORIGINS = [s.strip() for s in csrf_origins.split(',') if s.strip()]
else:
    CSRF_TRUSTED_ORIGINS = []

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # third party
    "rest_framework",

    # local
    "fares.apps.FaresConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    # WhiteNoise should be directly after SecurityMiddleware so it can serve static files early
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "chauffeur_project.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "chauffeur_project.wsgi.application"

# Database

# Use local SQLite for development by default. To use a remote database set USE_REMOTE_DB=True
# and provide DB_ENGINE, DB_NAME, DB_USER, DB_PASSWORD, DB_HOST and optionally DB_PORT.
if os.getenv("USE_REMOTE_DB", "False") == "True":
    DATABASES = {
        "default": {
            "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.postgresql"),
            "NAME": os.getenv("DB_NAME"),
            "USER": os.getenv("DB_USER"),
            "PASSWORD": os.getenv("DB_PASSWORD"),
            "HOST": os.getenv("DB_HOST"),
            "PORT": os.getenv("DB_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# Route estimates are cached here
CACHES = {
    "default": {
        "BACKEND": os.getenv("CACHE_BACKEND", "django.core.cache.backends.locmem.LocMemCache"),
        "LOCATION": os.getenv("CACHE_LOCATION", "fares"),
    }
}

REST_FRAMEWORK = {
    "COERCE_DECIMAL_TO_STRING": True,
}

# Password validation
AUTH_PASSWORD_VALIDATORS = []

# Internationalization
LANGUAGE_CODE = "en-us"
# Naive booking times are interpreted in this zone, which is also the pricing zone
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "Europe/Amsterdam")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"), "propagate": False},
        "fares": {"handlers": ["console"], "level": os.getenv("FARES_LOG_LEVEL", "INFO"), "propagate": False},
    },
}

# Google Maps
# Server key for server-to-server calls (Directions, Geocoding). For backwards compatibility the
# old GOOGLE_MAPS_API_KEY env var is still accepted if the server key is not set.
GOOGLE_MAPS_SERVER_KEY = os.getenv("GOOGLE_MAPS_SERVER_KEY", os.getenv("GOOGLE_MAPS_API_KEY", ""))
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", GOOGLE_MAPS_SERVER_KEY)
GOOGLE_DIRECTIONS_TIMEOUT = float(os.getenv("GOOGLE_DIRECTIONS_TIMEOUT", "10"))
# Cache timeout for route estimates (seconds)
GOOGLE_DISTANCE_CACHE_TIMEOUT = int(os.getenv("GOOGLE_DISTANCE_CACHE_TIMEOUT", str(6 * 3600)))

# Straight-line estimate used when Google is unreachable; prices built on it are estimates
ESTIMATE_FALLBACK_ENABLED = os.getenv("ESTIMATE_FALLBACK_ENABLED", "True") == "True"
ESTIMATE_FALLBACK_SPEED_KMH = float(os.getenv("ESTIMATE_FALLBACK_SPEED_KMH", "40"))
ESTIMATE_FALLBACK_ROAD_FACTOR = float(os.getenv("ESTIMATE_FALLBACK_ROAD_FACTOR", "1.0"))

# Pricing defaults. Admin-edited VehicleRate / PriceRule / AirportZone records take precedence.
PRICING = {
    "CURRENCY": "EUR",
    "TAX_RATE": os.getenv("PRICING_TAX_RATE", "0.21"),
    "TIME_ZONE": TIME_ZONE,
    "MAX_STOPOVERS": int(os.getenv("PRICING_MAX_STOPOVERS", "5")),
    # Totals above this are flagged for a route check
    "HIGH_PRICE_WARNING": 500,
    # Totals at or above this are reported as not valid
    "MAX_VALID_TOTAL": 1000,
    "RATE_TABLE": {
        "standard": {
            "base_price": "5.00",
            "per_km_rate": "2.00",
            "per_minute_rate": "0.30",
            "per_hour_rate": "25.00",
            "night_surcharge_amount": "5.00",
            "minimum_fare": "12.00",
        },
        "comfort": {
            "base_price": "7.00",
            "per_km_rate": "2.15",
            "per_minute_rate": "0.45",
            "per_hour_rate": "35.00",
            "night_surcharge_amount": "7.50",
            "minimum_fare": "15.00",
        },
        "luxury": {
            "base_price": "8.50",
            "per_km_rate": "2.75",
            "per_minute_rate": "0.55",
            "per_hour_rate": "45.00",
            "night_surcharge_amount": "10.00",
            "minimum_fare": "18.00",
        },
        "van": {
            "base_price": "12.00",
            "per_km_rate": "2.25",
            "per_minute_rate": "0.45",
            "per_hour_rate": "35.00",
            "night_surcharge_amount": "10.00",
            "minimum_fare": "25.00",
        },
    },
    # kind: "fixed" (euros) or "percentage" (fraction of the pre-surcharge subtotal)
    "SURCHARGES": {
        "rushHour": {"kind": "fixed", "amount": "3.00", "description": "Rush hour (07:00-09:00, 17:00-19:00)"},
        # no amount: the vehicle's night_surcharge_amount is charged
        "nightTime": {"kind": "fixed", "amount": None, "description": "Night rate (22:00-07:00)"},
        "airportPickup": {"kind": "percentage", "amount": "0.10", "description": "Airport pickup"},
        "stopover": {"kind": "fixed", "amount": "5.00", "description": "Extra stop"},
    },
    # [start, end) local hours
    "RUSH_HOUR_WINDOWS": [(7, 9), (17, 19)],
    "NIGHT_WINDOW": (22, 7),
    "AIRPORT_KEYWORDS": ["airport", "luchthaven", "schiphol"],
    "AIRPORTS": [
        {"name": "Amsterdam Schiphol", "keywords": ["schiphol"], "latitude": 52.3105, "longitude": 4.7683, "radius_km": 3.0},
        {"name": "Brussels Airport", "keywords": ["zaventem", "brussels airport"], "latitude": 50.9010, "longitude": 4.4856, "radius_km": 3.0},
    ],
}

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'

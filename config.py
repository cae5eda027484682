import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./skillswap.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_EXPIRE_MINUTES = int(data.get("JWT_EXPIRE_MINUTES", 60))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Links embedded in verification emails
    APP_BASE_URL = data.get("APP_BASE_URL", "http://localhost:3000")

    # Outbound email: "smtp" or "console"
    EMAIL_BACKEND = data.get("EMAIL_BACKEND", "console")
    EMAIL_FROM = data.get("EMAIL_FROM", "noreply@trademyskills.com")
    EMAIL_FROM_NAME = data.get("EMAIL_FROM_NAME", "TradeMySkills")
    SMTP_HOST = data.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USERNAME = data.get("SMTP_USERNAME", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = bool(data.get("SMTP_USE_TLS", True))
    # None: implicit TLS only on port 465
    SMTP_USE_SSL = data.get("SMTP_USE_SSL")
    SMTP_TIMEOUT = int(data.get("SMTP_TIMEOUT", 10))

    # Rate limiting (limits storage URI, e.g. async+redis://localhost:6379/0)
    RATE_LIMIT_STORAGE_URI = data.get("RATE_LIMIT_STORAGE_URI", "async+memory://")
    USERNAME_CHANGE_LIMIT = int(data.get("USERNAME_CHANGE_LIMIT", 2))
    USERNAME_CHANGE_NEW_USER_LIMIT = int(data.get("USERNAME_CHANGE_NEW_USER_LIMIT", 5))
    EMAIL_CHANGE_LIMIT = int(data.get("EMAIL_CHANGE_LIMIT", 2))
    EMAIL_CHANGE_NEW_USER_LIMIT = int(data.get("EMAIL_CHANGE_NEW_USER_LIMIT", 5))
    IDENTITY_CHANGE_WINDOW_DAYS = int(data.get("IDENTITY_CHANGE_WINDOW_DAYS", 30))
    SIGNUP_LIMIT = int(data.get("SIGNUP_LIMIT", 5))
    SIGNUP_WINDOW_MINUTES = int(data.get("SIGNUP_WINDOW_MINUTES", 15))
    GENERAL_API_LIMIT = int(data.get("GENERAL_API_LIMIT", 30))
    GENERAL_API_WINDOW_SECONDS = int(data.get("GENERAL_API_WINDOW_SECONDS", 60))
    NEW_USER_WINDOW_DAYS = int(data.get("NEW_USER_WINDOW_DAYS", 7))

    # Verification token lifetimes
    USERNAME_TOKEN_TTL_MINUTES = int(data.get("USERNAME_TOKEN_TTL_MINUTES", 15))
    EMAIL_TOKEN_TTL_MINUTES = int(data.get("EMAIL_TOKEN_TTL_MINUTES", 30))

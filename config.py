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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./magic_link.db")
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # RS256 key pair, inline PEM or path to a PEM file
    JWT_PRIVATE_KEY = data.get("JWT_PRIVATE_KEY")
    JWT_PRIVATE_KEY_PATH = data.get("JWT_PRIVATE_KEY_PATH")
    JWT_PUBLIC_KEY = data.get("JWT_PUBLIC_KEY")
    JWT_PUBLIC_KEY_PATH = data.get("JWT_PUBLIC_KEY_PATH")
    JWT_KEY_ID = data.get("JWT_KEY_ID", "supplier-onboarding-key-1")

    TOKEN_ISSUER = data.get("TOKEN_ISSUER", "supplier-onboarding-service")
    TOKEN_SUBJECT = data.get("TOKEN_SUBJECT", "invitation-service")
    TOKEN_AUDIENCE = data.get("TOKEN_AUDIENCE", "supplier-portal")
    TOKEN_DEFAULT_EXPIRY_DAYS = data.get("TOKEN_DEFAULT_EXPIRY_DAYS", 7)
    TOKEN_MAX_VALIDATION_ATTEMPTS = data.get("TOKEN_MAX_VALIDATION_ATTEMPTS", 5)
    TOKEN_CLOCK_TOLERANCE_SECONDS = data.get("TOKEN_CLOCK_TOLERANCE_SECONDS", 60)
    INVITATION_LINK_BASE_URL = data.get(
        "INVITATION_LINK_BASE_URL", "http://localhost:5000"
    )

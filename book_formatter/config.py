"""
Book Formatter Configuration
Supports AWS Parameter Store for production secrets
"""
import os
from functools import lru_cache

import boto3


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from AWS Parameter Store or environment"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    # Try AWS Parameter Store in production
    if os.environ.get("USE_PARAMETER_STORE"):
        try:
            ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "us-east-1"))
            path = os.environ.get("PARAMETER_STORE_PATH", "/book-formatter/prod/")
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
            return response["Parameter"]["Value"]
        except Exception:
            pass

    return default


def _database_uri(uri: str) -> str:
    # Render and Heroku still hand out postgres:// URLs
    if uri.startswith("postgres://"):
        return uri.replace("postgres://", "postgresql://", 1)
    return uri


def _renderer_environment() -> str:
    explicit = os.environ.get("RENDERER_ENVIRONMENT", "").strip().lower()
    if explicit in ("local", "hosted"):
        return explicit
    if os.environ.get("AWS_LAMBDA_FUNCTION_NAME") or os.environ.get("VERCEL"):
        return "hosted"
    return "local"


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Database
    SQLALCHEMY_DATABASE_URI = _database_uri(os.environ.get("DATABASE_URL", "sqlite:///book_formatter.db"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Uploads
    MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    # Style templates
    STYLE_TEMPLATE_DIR = os.environ.get(
        "STYLE_TEMPLATE_DIR",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "styles"),
    )
    ALLOWED_TEMPLATES = {
        "classic": "Classic Serif",
        "modern": "Modern Sans",
        "minimalist": "Minimalist",
    }
    DEFAULT_TEMPLATE = "classic"

    # AWS
    AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
    AWS_S3_BUCKET = os.environ.get("AWS_S3_BUCKET", "")
    S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL") or None
    ARTIFACT_PUBLIC_BASE_URL = os.environ.get("ARTIFACT_PUBLIC_BASE_URL", "")
    ORIGINALS_FOLDER = os.environ.get("ORIGINALS_FOLDER", "book-formatter/originals")
    PDFS_FOLDER = os.environ.get("PDFS_FOLDER", "book-formatter/pdfs")

    # Renderer
    RENDERER_ENVIRONMENT = _renderer_environment()
    CHROMIUM_EXECUTABLE_PATH = os.environ.get("CHROMIUM_EXECUTABLE_PATH", "/usr/bin/chromium")
    HOSTED_CHROMIUM_PATH = os.environ.get("HOSTED_CHROMIUM_PATH", "")
    CHROMIUM_SEARCH_PATHS = [
        p for p in os.environ.get(
            "CHROMIUM_SEARCH_PATHS",
            os.pathsep.join([
                "/opt/chromium",
                os.environ.get("PLAYWRIGHT_BROWSERS_PATH", os.path.expanduser("~/.cache/ms-playwright")),
            ]),
        ).split(os.pathsep) if p
    ]
    RENDER_SETTLE_TIMEOUT_MS = int(os.environ.get("RENDER_SETTLE_TIMEOUT_MS", "30000"))
    MIN_PDF_BYTES = 100

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)
    SQLALCHEMY_DATABASE_URI = _database_uri(get_parameter("database-url", Config.SQLALCHEMY_DATABASE_URI))
    AWS_S3_BUCKET = get_parameter("aws-s3-bucket", Config.AWS_S3_BUCKET)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AWS_S3_BUCKET = "test-bucket"
    RENDERER_ENVIRONMENT = "local"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


@lru_cache()
def get_config(env: str = None):
    """Get configuration by environment name"""
    env = env or os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])

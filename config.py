"""
docbatch Configuration
Supports AWS Parameter Store for production secrets
"""
import os

try:
    import boto3
except ImportError:
    boto3 = None


MB = 1024 * 1024


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from AWS Parameter Store or environment"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    # Try AWS Parameter Store in production
    if boto3 and os.environ.get("USE_PARAMETER_STORE"):
        try:
            ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "us-west-2"))
            path = os.environ.get("PARAMETER_STORE_PATH", "/docbatch/prod/")
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
            return response["Parameter"]["Value"]
        except Exception:
            pass

    return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Security
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600

    # Conversion backend: "text" (extract + redraw) or "libreoffice" (native)
    CONVERTER_BACKEND = os.environ.get("CONVERTER_BACKEND", "text").strip().lower()

    # Upload limits (mirrored by the upload page)
    MAX_FILES = _env_int("MAX_FILES", 100)
    MAX_FILE_SIZE = _env_int("MAX_FILE_SIZE", 500 * MB)
    MAX_TOTAL_SIZE = _env_int("MAX_TOTAL_SIZE", 500 * MB)
    # Multipart framing overhead on top of the payload
    MAX_CONTENT_LENGTH = MAX_TOTAL_SIZE + 16 * MB

    # PDF page rendering (text backend)
    PDF_FONT_NAME = os.environ.get("PDF_FONT_NAME", "Helvetica")
    PDF_FONT_SIZE = _env_int("PDF_FONT_SIZE", 11)
    PDF_MARGIN = _env_int("PDF_MARGIN", 50)

    # Archive
    ZIP_COMPRESSION_LEVEL = _env_int("ZIP_COMPRESSION_LEVEL", 6)

    # LibreOffice backend
    SOFFICE_BINARY = os.environ.get("SOFFICE_BINARY", "soffice")
    CONVERSION_TIMEOUT = _env_int("CONVERSION_TIMEOUT", 300)

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG").upper()


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = False
    TESTING = True
    WTF_CSRF_ENABLED = False
    CONVERTER_BACKEND = "text"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}

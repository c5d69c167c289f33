import os
from pathlib import Path
from dotenv import load_dotenv

root_env = Path(__file__).resolve().parents[1] / ".env"
if root_env.exists():
    load_dotenv(root_env)

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Upper bound for JSON export bodies posted to /reports
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(32 * 1024 * 1024)))

    # -------------------------------------------
    #            Export Parameters
    # -------------------------------------------
    EXPORT_DIR = os.getenv("EXPORT_DIR", "exports")
    EXPORT_DEFAULT_FILE_LABEL = os.getenv("EXPORT_DEFAULT_FILE_LABEL", "export_report")
    EXPORT_DEFAULT_SHEET_NAME = os.getenv("EXPORT_DEFAULT_SHEET_NAME", "Data Report")
    EXPORT_DEFAULT_COLUMN_WIDTH = int(os.getenv("EXPORT_DEFAULT_COLUMN_WIDTH", "12"))
    DATES_MAX_SPAN_DAYS = int(os.getenv("DATES_MAX_SPAN_DAYS", "3660"))

    @classmethod
    def validate(cls):
        if cls.EXPORT_DEFAULT_COLUMN_WIDTH <= 0:
            raise ValueError("EXPORT_DEFAULT_COLUMN_WIDTH must be a positive integer")
        if not cls.EXPORT_DEFAULT_FILE_LABEL.strip():
            raise ValueError("EXPORT_DEFAULT_FILE_LABEL must not be blank")

class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

class ProductionConfig(Config):
    DEBUG = False

class TestingConfig(Config):
    TESTING = True
    EXPORT_DIR = os.getenv("EXPORT_DIR", "exports_test")

config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}

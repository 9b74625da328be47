from os import getenv

class Settings:
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))  # 15 minutes
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "43200"))  # ~1 month

    # signups with one of these e-mails get the platform Admin role
    ADMIN_EMAILS = [e.strip().lower() for e in getenv("ADMIN_EMAILS", "").split(",") if e.strip()]

    UPLOAD_DIR = getenv("UPLOAD_DIR", "uploads")
    MAX_IMAGE_BYTES = int(getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

    GEMINI_API_KEY = getenv("GEMINI_API_KEY")
    GEMINI_MODEL = getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_BASE_URL = getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    INSIGHTS_TIMEOUT = int(getenv("INSIGHTS_TIMEOUT", "60"))

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()

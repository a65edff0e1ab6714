import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "Onboarding Digital API"
    VERSION: str = "1.0.0"
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "onboarding")
    MONGODB_TLS: bool = _as_bool(os.getenv("MONGODB_TLS"), default=False)
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ANON_PUBLIC: str = os.getenv("SUPABASE_ANON_PUBLIC")
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "kyc-documents")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    SIGNED_URL_TTL_SECONDS: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "900"))
    MINIMUM_CLIENT_AGE: int = int(os.getenv("MINIMUM_CLIENT_AGE", "18"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SUPERUSER_USERNAME: str = os.getenv("SUPERUSER_USERNAME")
    SUPERUSER_PASSWORD: str = os.getenv("SUPERUSER_PASSWORD")
    SUPERUSER_EMAIL: str = os.getenv("SUPERUSER_EMAIL")


settings = Settings()

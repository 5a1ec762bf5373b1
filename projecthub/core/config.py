from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://projecthub:projecthub@db:5432/projecthub")
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "1440"))  # 24h, the SPA keeps a single token
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    INVITE_CODE_LENGTH = int(getenv("INVITE_CODE_LENGTH", "8"))
    ACTIVITY_LIMIT = int(getenv("ACTIVITY_LIMIT", "10"))
    USER_SEARCH_LIMIT = int(getenv("USER_SEARCH_LIMIT", "10"))

settings = Settings()

import os
from dotenv import load_dotenv

load_dotenv()

ENV = os.getenv("ENV", "dev")
IS_DEV = ENV in ("dev", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./blog.db")
DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "30"))

# 🔐 Token settings
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production-with-a-long-random-value")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN_DAYS = int(os.getenv("JWT_EXPIRES_IN_DAYS", "7"))
JWT_ISSUER = os.getenv("JWT_ISSUER", "blog-api")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "blog-users")

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# ✅ FIELD LIMITS
COMMENT_MIN_LENGTH = 10
COMMENT_MAX_LENGTH = 1000
EXCERPT_LENGTH = 150
MAX_PAGE_SIZE = 100

import os

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    DATABASE_CREDENTIALS = os.getenv("DATABASE_CREDENTIALS")
    if not DATABASE_CREDENTIALS:
        raise ValueError("DATABASE_URL or DATABASE_CREDENTIALS environment variable is required")
    DATABASE_URL = f"postgresql+asyncpg://{DATABASE_CREDENTIALS}"

DATABASE_ECHO = os.getenv("DATABASE_ECHO", "").strip().lower() in {"1", "true", "yes"}

import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "VillaBook"
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Identity (tokens are issued by the external identity provider)
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "villabook_session")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./villabook.db")
    SQLITE_BUSY_TIMEOUT_SECONDS: float = float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30"))

    # Booking policy: "pending" requires a host decision, "confirmed" books directly
    BOOKING_INITIAL_STATUS: str = os.getenv("BOOKING_INITIAL_STATUS", "pending").lower()
    SEED_DEFAULT_CATALOG: bool = os.getenv("SEED_DEFAULT_CATALOG", "true").lower() == "true"

    # Mail Settings (Mailgun)
    MAIL_FROM: str = os.getenv("MAIL_FROM", "noreply@villabook.local")
    MAILGUN_API_KEY: str = os.getenv("MAILGUN_API_KEY", "")
    MAILGUN_DOMAIN: str = os.getenv("MAILGUN_DOMAIN", "")
    HOST_NOTIFICATION_EMAIL: str = os.getenv("HOST_NOTIFICATION_EMAIL", "")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_BOOKING: str = os.getenv("RATE_LIMIT_BOOKING", "10/minute")

settings = Settings()

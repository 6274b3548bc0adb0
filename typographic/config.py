import os

# Settings the app cannot bill without
REQUIRED_SETTINGS = ("STRIPE_PUBLISHABLE_KEY", "STRIPE_SECRET_KEY", "JWT_SECRET_KEY")


def _normalize_db_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+psycopg://" not in url:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _default_db_url() -> str:
    db_path = os.path.join(
        os.path.dirname(__file__),
        "..",
        "instance",
        "typographic.sqlite")
    os.makedirs(os.path.dirname(db_path), exist_ok=True)
    return f"sqlite:///{os.path.abspath(db_path)}"


class Config:
    """Environment-driven settings, read when the class is instantiated."""

    def __init__(self):
        self.SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
        self.JWT_SECRET_KEY = (
            os.environ.get("JWT_SECRET_KEY")
            or os.environ.get("JWT_SECRET")  # legacy name from the .env example
        )
        db_url = os.environ.get("DATABASE_URL")
        self.SQLALCHEMY_DATABASE_URI = (
            _normalize_db_url(db_url) if db_url else _default_db_url()
        )
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False

        self.STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
        self.STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "").strip()

        self.SESSION_IDLE_SECONDS = int(os.getenv("SESSION_IDLE_SECONDS", 60 * 60))
        self.INVOICE_DAYS_UNTIL_DUE = int(os.getenv("INVOICE_DAYS_UNTIL_DUE", 30))

        self.CORS_ALLOWED_ORIGINS = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]

    def as_flask_config(self) -> dict:
        return {k: v for k, v in vars(self).items() if k.isupper()}

    def missing_settings(self) -> list:
        """Names of required settings that are unset or empty."""
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name, None)]

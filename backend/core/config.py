import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote_plus

SUPPORTED_DB_DRIVERS = ("sqlite3", "mysql")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings loaded from environment variables with safe defaults."""

    app_name: str = "PAC Backend"
    env: str = "dev"
    log_level: str = "INFO"
    log_persistence: bool = False

    database_url: str = ""  # overrides the driver settings below when set
    db_driver: str = "sqlite3"
    db_name: str = "pac.db"
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = ""
    db_password: str = ""

    bind_address: str = "0.0.0.0:9090"
    idle_timeout_seconds: int = 120
    shutdown_grace_seconds: int = 30

    oidc_issuer_url: str = "http://localhost:8080/auth/realms/demo"
    oidc_client_id: str = "demo-client"
    oidc_client_secret: str = ""
    oidc_redirect_url: str = "http://localhost:9090/demo/callback"
    auth_protect_all_routes: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            env=os.getenv("ENV", cls.env),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_persistence=_env_bool("LOG_PERSISTENCE", cls.log_persistence),
            database_url=os.getenv("DATABASE_URL", ""),
            db_driver=os.getenv("DB_DRIVER", cls.db_driver),
            db_name=os.getenv("DB_NAME", cls.db_name),
            db_host=os.getenv("DB_HOST", cls.db_host),
            db_port=int(os.getenv("DB_PORT", str(cls.db_port))),
            db_user=os.getenv("DB_USER", cls.db_user),
            db_password=os.getenv("DB_PASSWORD", cls.db_password),
            bind_address=os.getenv("BIND_ADDRESS", cls.bind_address),
            idle_timeout_seconds=int(
                os.getenv("IDLE_TIMEOUT_SECONDS", str(cls.idle_timeout_seconds))
            ),
            shutdown_grace_seconds=int(
                os.getenv("SHUTDOWN_GRACE_SECONDS", str(cls.shutdown_grace_seconds))
            ),
            oidc_issuer_url=os.getenv("OIDC_ISSUER_URL", cls.oidc_issuer_url),
            oidc_client_id=os.getenv("OIDC_CLIENT_ID", cls.oidc_client_id),
            oidc_client_secret=os.getenv("OIDC_CLIENT_SECRET", cls.oidc_client_secret),
            oidc_redirect_url=os.getenv("OIDC_REDIRECT_URL", cls.oidc_redirect_url),
            auth_protect_all_routes=_env_bool(
                "AUTH_PROTECT_ALL_ROUTES", cls.auth_protect_all_routes
            ),
        )

    def resolved_database_url(self) -> str:
        """Return the SQLAlchemy URL for the configured driver.

        ``DATABASE_URL`` wins when set. Otherwise ``DB_DRIVER`` selects between
        the embedded sqlite3 file and a MySQL server.
        """
        if self.database_url:
            return self.database_url
        if self.db_driver == "sqlite3":
            return f"sqlite+aiosqlite:///{self.db_name}"
        if self.db_driver == "mysql":
            credentials = quote_plus(self.db_user)
            if self.db_password:
                credentials += ":" + quote_plus(self.db_password)
            return (
                f"mysql+aiomysql://{credentials}@{self.db_host}:{self.db_port}"
                f"/{self.db_name}?charset=utf8mb4"
            )
        raise ValueError(
            f"Database driver must be one of {list(SUPPORTED_DB_DRIVERS)}, was {self.db_driver!r}"
        )

    def bind_host_port(self) -> tuple[str, int]:
        """Split ``BIND_ADDRESS`` (``host:port`` or ``:port``) into its parts."""
        host, _, port = self.bind_address.rpartition(":")
        if not port.isdigit():
            raise ValueError(f"BIND_ADDRESS must end with a port, was {self.bind_address!r}")
        return host or "0.0.0.0", int(port)


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings.from_env()

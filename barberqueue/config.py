# barberqueue/config.py

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

PROFILE_POLICIES = ("abort", "ignore")


@dataclass
class Settings:
    database_url: str = "sqlite:///./barberqueue.db"
    secret_key: str = "change-me-later"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    # what to do when the profile insert fails after an identity was created
    profile_failure_policy: str = "abort"
    log_level: str = "INFO"
    sql_echo: bool = False


def load_settings() -> Settings:
    policy = os.getenv("PROFILE_FAILURE_POLICY", "abort").lower()
    if policy not in PROFILE_POLICIES:
        raise ValueError(f"PROFILE_FAILURE_POLICY must be one of {PROFILE_POLICIES}, got {policy!r}")

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./barberqueue.db"),
        secret_key=os.getenv("SECRET_KEY", "change-me-later"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")),
        profile_failure_policy=policy,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        sql_echo=os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes"),
    )


settings = load_settings()

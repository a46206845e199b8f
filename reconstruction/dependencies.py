"""Singleton instances shared across routers and services."""

from reconstruction.config import Settings

settings = Settings.from_env()


def get_settings() -> Settings:
    return settings

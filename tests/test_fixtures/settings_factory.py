"""
Settings Factory

Builds Settings isolated from the developer's .env file.
"""

from layercache.core.config.settings import Settings


def make_settings(**overrides) -> Settings:
    """Settings for tests: test environment, console logs, .env ignored."""
    values = {"ENVIRONMENT": "test", "LOG_FORMAT": "console"}
    values.update(overrides)
    return Settings(_env_file=None, **values)

import os
from typing import Iterable, Optional, Protocol

from pydantic import SecretStr

from utils.logger import logger

DEFAULT_ENV_VARS = ("SAFECOMMIT_AI_API_KEY",)


class CredentialStore(Protocol):
    """Source of the hosted-backend API key."""

    def load_ai_credential(self) -> str:
        """Returns the API key, or an empty string when none is stored."""
        ...


class EnvCredentialStore:
    """
    Reads the API key from the configuration, then from environment variables.

    Args:
        config_key: The `ai.api_key` value from the loaded configuration.
        env_vars: Environment variables to try, in order.
    """

    def __init__(self, config_key: Optional[SecretStr] = None, env_vars: Iterable[str] = DEFAULT_ENV_VARS):
        self._config_key = config_key
        self._env_vars = tuple(env_vars)

    def load_ai_credential(self) -> str:
        if self._config_key is not None:
            value = self._config_key.get_secret_value().strip()
            if value:
                return value

        for name in self._env_vars:
            value = (os.getenv(name) or "").strip()
            if value:
                logger.debug(f"Using API key from environment variable {name}")
                return value
        return ""

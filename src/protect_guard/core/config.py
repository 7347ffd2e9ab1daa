"""protect-guard client configuration.

Defines the validated configuration model consumed by the HTTP gateway
and the protection orchestrator.  Credentials are resolved exactly once,
when the configuration is built, with the precedence:

1. explicit argument,
2. process environment (``FI_API_KEY``, ``FI_SECRET_KEY``, ``FI_BASE_URL``),
3. :class:`~protect_guard.core.errors.MissingCredentials`.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from protect_guard.core.errors import MissingCredentials

ENV_API_KEY = "FI_API_KEY"
ENV_SECRET_KEY = "FI_SECRET_KEY"
ENV_BASE_URL = "FI_BASE_URL"

DEFAULT_BASE_URL = "https://api.futureagi.com"
DEFAULT_ACTION = "Response cannot be generated as the input fails the checks"


class ProtectConfig(BaseModel):
    """Configuration for a protect-guard client.

    All fields except the credentials carry defaults, so
    ``ProtectConfig(api_key=..., secret_key=...)`` is a complete
    configuration.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    api_key: SecretStr = Field(description="API key sent as X-Api-Key.")
    secret_key: SecretStr = Field(description="Secret key sent as X-Secret-Key.")
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the evaluation service.",
    )
    default_timeout_ms: int = Field(
        default=30_000,
        ge=0,
        description="Time budget of a protect call when none is given.",
    )
    request_timeout_seconds: float = Field(
        default=200.0,
        gt=0,
        description="Timeout for general (non-protect) evaluation requests.",
    )
    batch_size: int = Field(
        default=5,
        ge=1,
        description="Number of rule checks issued concurrently per batch.",
    )
    default_action: str = Field(
        default=DEFAULT_ACTION,
        description="Message surfaced when a rule without its own action triggers.",
    )

    @classmethod
    def resolve(
        cls,
        api_key: str | None = None,
        secret_key: str | None = None,
        base_url: str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ProtectConfig:
        """Build a configuration from explicit arguments and the environment.

        Raises
        ------
        MissingCredentials
            If either key is absent from both the arguments and the
            environment.
        """
        env = os.environ if environ is None else environ
        api_key = api_key or env.get(ENV_API_KEY)
        secret_key = secret_key or env.get(ENV_SECRET_KEY)
        base_url = base_url or env.get(ENV_BASE_URL) or DEFAULT_BASE_URL

        if not api_key or not secret_key:
            raise MissingCredentials(
                "API key or secret key is missing for Protect initialization."
            )

        return cls(
            api_key=SecretStr(api_key),
            secret_key=SecretStr(secret_key),
            base_url=base_url.rstrip("/"),
            **overrides,
        )

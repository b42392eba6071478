"""OpenAI client loading for the quiz runner."""

from __future__ import annotations

import os
from typing import Any, Mapping

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_client(
    *,
    api_base: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Any:
    """Initialize an OpenAI client using environment-derived credentials.

    A ``.env`` file in the working directory is honoured before the
    environment is inspected. ``api_base`` overrides the endpoint when set.
    """

    if env is None:
        load_dotenv()
        env = os.environ
    api_key = env.get(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    if api_base:
        return OpenAI(api_key=api_key, base_url=api_base)
    return OpenAI(api_key=api_key)

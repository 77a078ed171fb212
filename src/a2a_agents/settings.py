from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from a2a_core.error_profiles import ErrorProfile, parse_error_profile

DEFAULT_AGENT_DESCRIPTION = (
    "Simple greeting agent demonstrating A2A agent-card discovery and JSON-RPC dispatch"
)


@dataclass(frozen=True)
class Settings:
    """Simple settings container sourced from environment variables."""

    # Listener
    host: str
    port: int
    base_path: str

    # Agent card identity
    agent_name: str
    agent_description: str
    agent_version: str
    agent_url: str

    # Error handling profile
    error_profile: ErrorProfile

    # Client side
    client_timeout: float

    cors_origins: Tuple[str, ...] = ("*",)


def _parse_int(name: str, default: str, errors: list) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        errors.append(f"{name} must be an integer, got {raw!r}")
        return int(default)


def _parse_float(name: str, default: str, errors: list) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        errors.append(f"{name} must be a number, got {raw!r}")
        return float(default)


def _raise_if_errors(errors: list) -> None:
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in errors
        )
        raise ValueError(error_msg)


def validate_settings(settings: Settings) -> None:
    """Validate settings and raise ValueError for invalid configurations."""
    errors = []

    if not 0 < settings.port < 65536:
        errors.append("PORT must be between 1 and 65535")

    if settings.base_path and not settings.base_path.startswith("/"):
        errors.append("A2A_BASE_PATH must be empty or start with '/'")

    if not settings.agent_name.strip():
        errors.append("A2A_AGENT_NAME must not be empty")

    if settings.client_timeout <= 0:
        errors.append("A2A_CLIENT_TIMEOUT must be positive")

    if not settings.cors_origins:
        errors.append("A2A_CORS_ORIGINS must list at least one origin")

    _raise_if_errors(errors)


@lru_cache()
def get_settings() -> Settings:
    """Return cached and validated settings."""
    errors: list = []

    host = os.getenv("HOST", "0.0.0.0")
    port = _parse_int("PORT", "9999", errors)
    base_path = os.getenv("A2A_BASE_PATH", "").rstrip("/")

    agent_name = os.getenv("A2A_AGENT_NAME", "Hello World Agent")
    agent_description = os.getenv("A2A_AGENT_DESCRIPTION", DEFAULT_AGENT_DESCRIPTION)
    agent_version = os.getenv("A2A_AGENT_VERSION", "1.0.0")
    agent_url: Optional[str] = os.getenv("A2A_AGENT_URL")

    try:
        error_profile = parse_error_profile(os.getenv("A2A_ERROR_PROFILE"))
    except ValueError as exc:
        errors.append(str(exc))
        error_profile = ErrorProfile.BASIC

    client_timeout = _parse_float("A2A_CLIENT_TIMEOUT", "30", errors)

    cors_origins = tuple(
        origin.strip()
        for origin in os.getenv("A2A_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    _raise_if_errors(errors)

    settings = Settings(
        host=host,
        port=port,
        base_path=base_path,
        agent_name=agent_name,
        agent_description=agent_description,
        agent_version=agent_version,
        agent_url=agent_url or f"http://localhost:{port}{base_path}",
        error_profile=error_profile,
        client_timeout=client_timeout,
        cors_origins=cors_origins,
    )

    # Validate settings
    validate_settings(settings)

    return settings


def create_example_env_file() -> str:
    """Generate an example .env file for the sample agent server."""
    return """# A2A agent server configuration
HOST=0.0.0.0
PORT=9999
# Mount the agent endpoints under a prefix, e.g. /a2a
A2A_BASE_PATH=

# Agent card identity
A2A_AGENT_NAME="Hello World Agent"
A2A_AGENT_DESCRIPTION="Simple greeting agent"
A2A_AGENT_VERSION=1.0.0
# Public URL advertised on the agent card (defaults to http://localhost:$PORT$A2A_BASE_PATH)
A2A_AGENT_URL=

# Error detail in JSON-RPC internal errors: basic | extended
A2A_ERROR_PROFILE=basic

# Client request timeout in seconds
A2A_CLIENT_TIMEOUT=30

# Comma separated list of allowed CORS origins
A2A_CORS_ORIGINS=*

# Logging
LOG_LEVEL=INFO
LOG_FILE=
# json | text (files are always json)
LOG_FORMAT=json
"""

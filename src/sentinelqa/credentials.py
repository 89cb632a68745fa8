"""API key resolution for SentinelQA."""

from __future__ import annotations

import os
from pathlib import Path

from sentinelqa.config import SentinelConfigError, ServiceProvider

# Environment variable holding the key for each provider
ENV_KEYS: dict[ServiceProvider, str] = {
    ServiceProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    ServiceProvider.OPENAI: "OPENAI_API_KEY",
    ServiceProvider.QWEN: "DASHSCOPE_API_KEY",
}


def resolve_api_key(
    provider: ServiceProvider | str = ServiceProvider.ANTHROPIC,
    project_dir: Path | None = None,
) -> str:
    """Resolve the API key for *provider* from multiple sources.

    Resolution order (highest priority first):
    1. Provider environment variable (e.g. ANTHROPIC_API_KEY)
    2. .env file in current directory
    3. Project config (.sentinelqa/config.yaml)
    4. Global config (~/.sentinelqa/config.yaml)

    The simulated ``custom`` provider needs no key and returns "".
    """
    provider = ServiceProvider.parse(provider)
    env_name = ENV_KEYS.get(provider)
    if env_name is None:
        return ""

    # 1. Environment variable
    if key := os.environ.get(env_name):
        return key

    # 2. .env file
    env_path = Path(".env")
    if env_path.exists():
        key = _parse_env_file(env_path, env_name)
        if key:
            return key

    # 3. Project config
    if project_dir:
        config_path = project_dir / "config.yaml"
        if config_path.exists():
            key = _parse_yaml_key(config_path)
            if key:
                return key

    # 4. Global config
    global_config = Path.home() / ".sentinelqa" / "config.yaml"
    if global_config.exists():
        key = _parse_yaml_key(global_config)
        if key:
            return key

    raise SentinelConfigError(
        f"{env_name} not set\n\n"
        f"SentinelQA needs an API key for the '{provider.value}' provider.\n\n"
        "To fix:\n"
        f"  export {env_name}=your-key-here\n"
        "  or set api_key in .sentinelqa/config.yaml\n"
        "  or run offline with --provider custom"
    )


def mask_key(key: str) -> str:
    """Mask an API key for display. Shows first 7 and last 3 chars."""
    if len(key) <= 10:
        return "***"
    return f"{key[:7]}...{key[-3:]}"


def _parse_env_file(path: Path, key_name: str) -> str | None:
    """Parse a .env file for a specific key."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line.startswith("#") or "=" not in line:
                    continue
                k, _, v = line.partition("=")
                if k.strip() == key_name:
                    return v.strip().strip("'\"")
    except OSError:
        return None
    return None


def _parse_yaml_key(path: Path) -> str | None:
    """Parse a YAML config file for an API key."""
    import yaml

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return None
    if not isinstance(data, dict):
        return None
    return data.get("api_key") or None

"""SentinelQA configuration management."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sentinelqa.errors import AgentConfigError
from sentinelqa.models import (
    DEFAULT_BUDGET_USD,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_RESPONSE_TOKENS,
    DEFAULT_MAX_TOOL_CALLS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SETTLE_SECONDS,
    DEFAULT_TEMPERATURE,
    MODELS,
)


class SentinelConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ServiceProvider(str, enum.Enum):
    """Language-model providers the gateway layer knows how to reach."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    QWEN = "qwen"
    CUSTOM = "custom"  # simulated, no network

    @classmethod
    def parse(cls, value: str | ServiceProvider) -> ServiceProvider:
        if isinstance(value, ServiceProvider):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise SentinelConfigError(f"Unknown provider: {value!r}\n\nExpected one of: {valid}") from None


@dataclass
class ToolConfig:
    """Declaration of one tool offered to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    enabled: bool = True


@dataclass
class ModelConfig:
    provider: ServiceProvider = ServiceProvider.ANTHROPIC
    model_name: str = MODELS["anthropic"]
    temperature: float = DEFAULT_TEMPERATURE


@dataclass
class AgentConfig:
    """Everything the agent loop needs to run one agent."""

    agent_id: str
    enabled: bool = True
    system_prompt: str | None = None
    model_config: ModelConfig = field(default_factory=ModelConfig)
    max_response_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS
    max_tool_calls: int = DEFAULT_MAX_TOOL_CALLS
    available_tools: list[ToolConfig] = field(default_factory=list)
    # repr=False keeps the key out of debug logs and tracebacks
    api_key: str = field(default="", repr=False)
    service_url: str | None = None

    def full_system_prompt(self) -> str | None:
        if self.system_prompt is None:
            return None
        return self.system_prompt.strip()

    def enabled_tools(self) -> list[ToolConfig]:
        return [tool for tool in self.available_tools if tool is not None and tool.enabled]

    def validate(self) -> None:
        """Raise AgentConfigError if the configuration cannot drive a turn."""
        if not self.agent_id or not self.agent_id.strip():
            raise AgentConfigError("Agent configuration has an empty agent_id")
        if self.max_tool_calls < 1:
            raise AgentConfigError(
                f"Agent {self.agent_id}: max_tool_calls must be >= 1 (got {self.max_tool_calls})"
            )
        if self.max_response_tokens < 1:
            raise AgentConfigError(
                f"Agent {self.agent_id}: max_response_tokens must be >= 1 (got {self.max_response_tokens})"
            )
        if not isinstance(self.model_config.provider, ServiceProvider):
            raise AgentConfigError(f"Agent {self.agent_id}: invalid provider {self.model_config.provider!r}")


@dataclass
class SentinelConfig:
    """Configuration for a SentinelQA project."""

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(".sentinelqa"))
    reports_dir: Path = field(default_factory=lambda: Path(".sentinelqa/reports"))
    layouts_dir: Path = field(default_factory=lambda: Path(".sentinelqa/layouts"))

    # Model
    provider: ServiceProvider = ServiceProvider.ANTHROPIC
    model: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    max_response_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS
    service_url: str | None = None
    api_key: str = field(default="", repr=False)

    # Agent loop
    max_tool_calls: int = DEFAULT_MAX_TOOL_CALLS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    budget: float = DEFAULT_BUDGET_USD
    reject_duplicate_tools: bool = True

    # UI automation
    poll_interval: float = DEFAULT_POLL_INTERVAL
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    screenshot_mode: str = "auto"  # auto | live | headless

    @property
    def model_name(self) -> str:
        return self.model or MODELS[self.provider.value]

    @classmethod
    def from_file(cls, config_path: Path) -> SentinelConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise SentinelConfigError(f"Config file not found: {config_path}\n\nTo fix: sentinelqa init")
        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise SentinelConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SentinelConfigError(f"Config file must contain a mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def for_project(cls, project_dir: Path) -> SentinelConfig:
        """Load ``config.yaml`` from *project_dir*, or defaults rooted there."""
        config_path = project_dir / "config.yaml"
        if config_path.is_file():
            return cls.from_file(config_path)
        return cls._from_dict({}, project_dir)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> SentinelConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir
        config.reports_dir = project_dir / data.get("reports_dir", "reports")
        config.layouts_dir = project_dir / data.get("layouts_dir", "layouts")

        if "provider" in data:
            config.provider = ServiceProvider.parse(data["provider"])
        if "model" in data:
            config.model = str(data["model"])
        if "service_url" in data:
            config.service_url = str(data["service_url"])
        if "api_key" in data:
            config.api_key = str(data["api_key"])

        try:
            if "temperature" in data:
                config.temperature = float(data["temperature"])
            if "max_response_tokens" in data:
                config.max_response_tokens = int(data["max_response_tokens"])
            if "max_tool_calls" in data:
                config.max_tool_calls = int(data["max_tool_calls"])
            if "max_iterations" in data:
                config.max_iterations = int(data["max_iterations"])
            if "budget" in data:
                config.budget = float(data["budget"])
            if "poll_interval" in data:
                config.poll_interval = float(data["poll_interval"])
            if "settle_seconds" in data:
                config.settle_seconds = float(data["settle_seconds"])
        except (TypeError, ValueError) as exc:
            raise SentinelConfigError(f"Invalid numeric value in config: {exc}") from exc

        if "reject_duplicate_tools" in data:
            config.reject_duplicate_tools = bool(data["reject_duplicate_tools"])
        if "screenshot_mode" in data:
            mode = str(data["screenshot_mode"]).lower()
            if mode not in ("auto", "live", "headless"):
                raise SentinelConfigError(
                    f"Invalid screenshot_mode: {mode!r}\n\nExpected one of: auto, live, headless"
                )
            config.screenshot_mode = mode

        return config

    def to_agent_config(
        self,
        agent_id: str,
        system_prompt: str | None = None,
        tools: list[ToolConfig] | None = None,
    ) -> AgentConfig:
        """Build the AgentConfig used by the agent loop."""
        return AgentConfig(
            agent_id=agent_id,
            system_prompt=system_prompt,
            model_config=ModelConfig(
                provider=self.provider,
                model_name=self.model_name,
                temperature=self.temperature,
            ),
            max_response_tokens=self.max_response_tokens,
            max_tool_calls=self.max_tool_calls,
            available_tools=list(tools or []),
            api_key=self.api_key,
            service_url=self.service_url,
        )

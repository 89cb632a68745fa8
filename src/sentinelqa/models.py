"""Centralized model configuration, pricing and engine defaults."""

# Default model ids per provider
MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
    "qwen": "qwen-plus",
    "custom": "simulated",
}

# Pricing per million tokens (USD)
PRICING = {
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
    "claude-opus-4-20250115": {"input": 15.00, "output": 75.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "qwen-plus": {"input": 0.40, "output": 1.20},
    "simulated": {"input": 0.0, "output": 0.0},
}

# OpenAI-compatible endpoint used for the qwen provider
QWEN_BASE_URL = "https://dashscope-intl.aliyuncs.com/compatible-mode/v1"

# Default budget per run
DEFAULT_BUDGET_USD = 2.00

# Agent loop
DEFAULT_MAX_ITERATIONS = 20
DEFAULT_MAX_TOOL_CALLS = 5
DEFAULT_MAX_RESPONSE_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.2

# UI automation
DEFAULT_POLL_INTERVAL = 0.1  # seconds between wait_for_element checks
DEFAULT_SETTLE_SECONDS = 0.05  # pause after each UI action
DEFAULT_WAIT_TIMEOUT = 5.0
DEFAULT_SCROLL_DELTA = 100.0

"""SentinelQA -- autonomous LLM agent for UI testing.

An agent inspects the UI, acts on it one tool call at a time, and records
every step into a Markdown test report.
"""

__version__ = "0.3.0"

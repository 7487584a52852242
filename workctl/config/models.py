from typing import Literal

from pydantic import BaseModel, Field


class LLMSettings(BaseModel):
    provider: Literal["anthropic", "openai"] = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    api_key_env: str = "ANTHROPIC_API_KEY"
    api_key: str | None = None
    max_tokens: int = Field(default=4096, gt=0)
    timeout: int = Field(default=60, gt=0)


class WorkctlConfig(BaseModel):
    workspace: str = "~/Work"
    llm: LLMSettings = Field(default_factory=LLMSettings)
    log_level: Literal["debug", "info", "warn", "error"] = "info"

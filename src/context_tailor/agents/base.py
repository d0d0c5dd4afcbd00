"""Base class for the pipeline's single-shot LLM collaborators."""

import time
from typing import Any

import logfire
from pydantic import BaseModel, ConfigDict, Field
from pydantic_ai import Agent as PydanticAgent
from pydantic_ai.settings import ModelSettings

from context_tailor.core.config import config as global_config
from context_tailor.core.exceptions import ExternalServiceError
from context_tailor.core.logging import configure_logging


class AgentExecutionError(ExternalServiceError):
    """Raised when an agent run fails."""

    def __init__(self, agent_name: str, original_error: Exception):
        super().__init__(
            service=f"agent:{agent_name}",
            message=f"Agent execution failed: {original_error}",
            original_error=original_error,
        )
        self.agent_name = agent_name


class AgentConfiguration(BaseModel):
    """Configuration for agent creation and behavior."""

    agent_name: str = Field(description="Name identifier for the agent")
    model: str | None = Field(default=None, description="pydantic-ai model name")
    system_prompt: str = Field(description="Instructions for the model")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    max_retries: int = Field(default=1, ge=0)

    model_config = ConfigDict(extra="forbid")


class TextAgent:
    """Wraps a text-output pydantic-ai Agent built on first use.

    Building lazily keeps construction free of provider credential checks, so
    collaborators can be wired up before keys are known.
    """

    def __init__(self, config: AgentConfiguration):
        self.config = config
        self.name = config.agent_name
        self.model = config.model or global_config.default_model
        self._agent: PydanticAgent[None, str] | None = None

    @property
    def agent(self) -> PydanticAgent[None, str]:
        if self._agent is None:
            settings = ModelSettings(temperature=self.config.temperature)
            if self.config.max_tokens is not None:
                settings["max_tokens"] = self.config.max_tokens
            self._agent = PydanticAgent(
                model=self.model,
                output_type=str,
                system_prompt=self.config.system_prompt,
                retries=self.config.max_retries,
                model_settings=settings,
            )
            configure_logging()
            logfire.info(f"Initialized {self.name} agent", model=self.model)
        return self._agent

    async def run_prompt(
        self, prompt: str, *, model_settings: ModelSettings | None = None, **log_fields: Any
    ) -> str:
        """Run one prompt and return the stripped text output."""
        start = time.time()
        try:
            result = await self.agent.run(prompt, model_settings=model_settings)
        except Exception as e:
            logfire.warning(f"{self.name} failed", error=str(e), **log_fields)
            raise AgentExecutionError(self.name, e) from e

        output = str(result.output or "").strip()
        logfire.debug(
            f"{self.name} completed",
            execution_time=time.time() - start,
            output_chars=len(output),
            **log_fields,
        )
        return output


__all__ = ["AgentConfiguration", "AgentExecutionError", "TextAgent"]

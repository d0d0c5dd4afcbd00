"""LLM summarizer used for SUMMARY-level compression."""

from pydantic_ai.settings import ModelSettings

from .base import AgentConfiguration, TextAgent

SUMMARIZER_SYSTEM_PROMPT = (
    "You are a precise summarizer. Produce a concise summary preserving all key facts, "
    "technical terms, numbers, and named entities. Output only the summary text, no preamble."
)

SUMMARIZER_USER_PROMPT_TEMPLATE = (
    "Summarize the following text in at most {max_tokens} tokens:\n\n{content}"
)


class LLMSummarizer(TextAgent):
    """Summarizes chunk text through a pydantic-ai agent at temperature 0."""

    def __init__(self, model: str | None = None):
        super().__init__(
            AgentConfiguration(
                agent_name="summarizer",
                model=model,
                system_prompt=SUMMARIZER_SYSTEM_PROMPT,
            )
        )

    async def summarize(self, text: str, max_tokens: int) -> str:
        prompt = SUMMARIZER_USER_PROMPT_TEMPLATE.format(max_tokens=max_tokens, content=text)
        output = await self.run_prompt(
            prompt,
            model_settings=ModelSettings(max_tokens=max_tokens),
            input_chars=len(text),
        )
        # an empty completion leaves the chunk as it was
        return output or text


__all__ = ["LLMSummarizer", "SUMMARIZER_SYSTEM_PROMPT"]

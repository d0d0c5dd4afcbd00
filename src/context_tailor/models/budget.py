"""Context window and token budget models."""

from enum import Enum

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Context window limits for one target model."""

    model_id: str
    max_context_tokens: int = Field(gt=0)
    reserved_for_response: int = Field(ge=0)
    reserved_for_conversation: int = Field(ge=0)


class BudgetAllocationStrategy(str, Enum):
    PROPORTIONAL = "PROPORTIONAL"
    PRIORITY = "PRIORITY"


class TokenBudget(BaseModel):
    """Per-section allocations and usage. Updates return new instances."""

    total_available: int = Field(ge=0)
    allocations: dict[str, int] = Field(default_factory=dict)
    used: dict[str, int] = Field(default_factory=dict)
    remaining: int

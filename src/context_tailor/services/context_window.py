"""Token budgets for target model context windows.

Budgets are pydantic models treated as values: every update returns a new
``TokenBudget``.
"""

import math

from context_tailor.models.budget import BudgetAllocationStrategy, ModelConfig, TokenBudget
from context_tailor.utils.text import round_half_up

MODEL_CONFIGS: dict[str, ModelConfig] = {
    "gpt-4": ModelConfig(
        model_id="gpt-4",
        max_context_tokens=128_000,
        reserved_for_response=4_000,
        reserved_for_conversation=8_000,
    ),
    "gpt-4o": ModelConfig(
        model_id="gpt-4o",
        max_context_tokens=128_000,
        reserved_for_response=16_000,
        reserved_for_conversation=8_000,
    ),
    "claude-sonnet": ModelConfig(
        model_id="claude-sonnet",
        max_context_tokens=200_000,
        reserved_for_response=8_000,
        reserved_for_conversation=16_000,
    ),
    "claude-opus": ModelConfig(
        model_id="claude-opus",
        max_context_tokens=200_000,
        reserved_for_response=8_000,
        reserved_for_conversation=16_000,
    ),
}

DEFAULT_MODEL = "gpt-4o"

PLATFORM_TO_MODEL: dict[str, str] = {
    "chatgpt": "gpt-4o",
    "claude": "claude-sonnet",
}

DEFAULT_SECTION_PROPORTIONS: dict[str, float] = {
    "systemPrompt": 0.05,
    "projectDocs": 0.50,
    "webResults": 0.20,
    "examples": 0.15,
    "formatting": 0.10,
}


def resolve_model_config(target_platform: str, model: str | None = None) -> ModelConfig:
    model_id = model or PLATFORM_TO_MODEL.get(target_platform.lower(), DEFAULT_MODEL)
    return MODEL_CONFIGS.get(model_id, MODEL_CONFIGS[DEFAULT_MODEL])


def create_budget(target_platform: str, model: str | None = None) -> TokenBudget:
    """Fresh budget for a platform, split by ``DEFAULT_SECTION_PROPORTIONS``.

    Unknown platforms and models fall back to gpt-4o.
    """
    model_config = resolve_model_config(target_platform, model)
    total = (
        model_config.max_context_tokens
        - model_config.reserved_for_response
        - model_config.reserved_for_conversation
    )
    return TokenBudget(
        total_available=total,
        allocations={
            section: math.floor(total * proportion)
            for section, proportion in DEFAULT_SECTION_PROPORTIONS.items()
        },
        used=dict.fromkeys(DEFAULT_SECTION_PROPORTIONS, 0),
        remaining=total,
    )


def allocate_budget(
    total_tokens: int,
    sections: dict[str, float],
    strategy: BudgetAllocationStrategy = BudgetAllocationStrategy.PROPORTIONAL,
) -> dict[str, int]:
    """Split ``total_tokens`` across weighted sections.

    PROPORTIONAL gives each section its share of the total weight. PRIORITY
    walks sections by descending weight and grants each its share or whatever
    is left, whichever is smaller.
    """
    total_weight = sum(sections.values())

    def share(weight: float) -> int:
        return math.floor(total_tokens * (weight / total_weight)) if total_weight > 0 else 0

    if strategy == BudgetAllocationStrategy.PROPORTIONAL:
        return {section: share(weight) for section, weight in sections.items()}

    result: dict[str, int] = {}
    remaining = total_tokens
    for section, weight in sorted(sections.items(), key=lambda item: item[1], reverse=True):
        granted = min(share(weight), remaining)
        result[section] = granted
        remaining -= granted
    return result


def track_usage(budget: TokenBudget, section: str, token_count: int) -> TokenBudget:
    used = {**budget.used, section: budget.used.get(section, 0) + token_count}
    return budget.model_copy(
        update={"used": used, "remaining": budget.total_available - sum(used.values())}
    )


def is_within_budget(budget: TokenBudget) -> bool:
    return all(
        used <= budget.allocations.get(section, 0) for section, used in budget.used.items()
    )


def rebalance(budget: TokenBudget) -> TokenBudget:
    """Move unused allocation from under-used sections to over-budget ones.

    Donors give up tokens in proportion to their slack, recipients gain in
    proportion to their deficit; at most ``min(surplus, deficit)`` moves.
    """
    surplus = 0
    deficits: dict[str, int] = {}
    for section, allocated in budget.allocations.items():
        slack = allocated - budget.used.get(section, 0)
        if slack > 0:
            surplus += slack
        elif slack < 0:
            deficits[section] = -slack

    if not deficits or surplus == 0:
        return budget.model_copy()

    total_deficit = sum(deficits.values())
    transferable = min(surplus, total_deficit)
    allocations = dict(budget.allocations)

    for section, allocated in budget.allocations.items():
        slack = allocated - budget.used.get(section, 0)
        if slack > 0:
            allocations[section] = allocated - math.floor(slack / surplus * transferable)

    for section, deficit in deficits.items():
        allocations[section] = allocations.get(section, 0) + math.floor(
            deficit / total_deficit * transferable
        )

    return budget.model_copy(update={"allocations": allocations})


def budget_report(budget: TokenBudget) -> str:
    lines = [
        "Token Budget Report",
        "===================",
        f"Total Available: {budget.total_available:,}",
        f"Remaining:       {budget.remaining:,}",
        "",
        "Section Breakdown:",
    ]
    for section, allocated in budget.allocations.items():
        used = budget.used.get(section, 0)
        pct = round_half_up(used / allocated * 100) if allocated > 0 else 0
        status = " [OVER BUDGET]" if used > allocated else ""
        lines.append(f"  {section:<20} {used:,} / {allocated:,} ({pct}%){status}")
    return "\n".join(lines)


__all__ = [
    "MODEL_CONFIGS",
    "PLATFORM_TO_MODEL",
    "DEFAULT_SECTION_PROPORTIONS",
    "resolve_model_config",
    "create_budget",
    "allocate_budget",
    "track_usage",
    "is_within_budget",
    "rebalance",
    "budget_report",
]

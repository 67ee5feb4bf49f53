from FocusFlow.ai.client import (
    AIClient,
    AIUnavailableError,
    FlowError,
    GeminiClient,
    UnavailableAIClient,
    create_ai_client,
)
from FocusFlow.ai.flows import (
    CATEGORIZE_ENERGY,
    PRODUCTIVITY_SUGGESTIONS,
    WEEKLY_SUMMARY,
    CategorizeEnergyInput,
    CategorizeEnergyOutput,
    Flow,
    ProductivitySuggestionsInput,
    ProductivitySuggestionsOutput,
    WeeklySummaryInput,
    WeeklySummaryOutput,
)

__all__ = [
    "AIClient",
    "AIUnavailableError",
    "FlowError",
    "GeminiClient",
    "UnavailableAIClient",
    "create_ai_client",
    "CATEGORIZE_ENERGY",
    "PRODUCTIVITY_SUGGESTIONS",
    "WEEKLY_SUMMARY",
    "CategorizeEnergyInput",
    "CategorizeEnergyOutput",
    "Flow",
    "ProductivitySuggestionsInput",
    "ProductivitySuggestionsOutput",
    "WeeklySummaryInput",
    "WeeklySummaryOutput",
]

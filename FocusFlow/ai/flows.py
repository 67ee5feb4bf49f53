from __future__ import annotations

import json
import logging
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

from FocusFlow.ai.client import AIClient, FlowError
from FocusFlow.prompts import (
    CATEGORIZE_ENERGY_PROMPT,
    PRODUCTIVITY_SUGGESTIONS_PROMPT,
    WEEKLY_SUMMARY_PROMPT,
)

log = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


# --- Contracts ---

class WeeklySummaryInput(BaseModel):
    user_id: str = Field(..., description="The ID of the user.")
    start_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Start date of the week (YYYY-MM-DD).")
    end_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="End date of the week (YYYY-MM-DD).")
    task_logs: str = Field(..., description="JSON string of all task logs for the week.")


class WeeklySummaryOutput(BaseModel):
    summary: str = Field(..., description="Summary of the user's time allocation and energy levels for the week.")
    suggestions: str = Field(..., description="Productivity tips based on the user's patterns.")


class ProductivitySuggestionsInput(BaseModel):
    weekly_summary: str = Field(..., description="A summary of the user's weekly time and energy logs.")
    user_preferences: Optional[str] = Field(default=None, description="Any user preferences or goals.")


class ProductivitySuggestionsOutput(BaseModel):
    suggestions: List[str] = Field(..., description="Productivity suggestions tailored to the user's data.")


class CategorizeEnergyInput(BaseModel):
    energy_input: str = Field(..., description="The user's qualitative note about their energy levels.")


class CategorizeEnergyOutput(BaseModel):
    category: str = Field(..., description="Energy category: positive, negative or neutral.")
    confidence: float = Field(..., ge=0, le=1, description="Certainty of the categorization (0-1).")


def _extract_json(text: str) -> Any:
    """Extract a JSON value from plain text or a fenced code block."""
    text = text.strip()
    if text.startswith("```"):
        # remove opening fence and optional language
        end = text.find('\n')
        if end != -1:
            text = text[end + 1 :]
        if text.endswith("```"):
            text = text[:-3]
    return json.loads(text.strip())


class Flow(Generic[InputT, OutputT]):
    """
    A prompt template bound to a validated input and output model.

    `run()` validates the payload, formats the prompt, asks the client for JSON
    and validates the reply. Every failure surfaces as `FlowError`; callers
    decide on the fallback. Nothing is retried.
    """

    def __init__(self, name: str, input_model: Type[InputT], output_model: Type[OutputT], prompt_template: str):
        self.name = name
        self.input_model = input_model
        self.output_model = output_model
        self.prompt_template = prompt_template

    def __repr__(self) -> str:
        return f"Flow({self.name!r})"

    def validate_input(self, payload: Union[InputT, Mapping[str, Any]]) -> InputT:
        if isinstance(payload, self.input_model):
            return payload
        try:
            return self.input_model.model_validate(payload)
        except ValidationError as e:
            raise FlowError(f"{self.name}: invalid input: {e}") from e

    def render_prompt(self, flow_input: InputT) -> str:
        fields = {key: ("" if value is None else value) for key, value in flow_input.model_dump().items()}
        schema_description = json.dumps(self.output_model.model_json_schema(), indent=2)
        return self.prompt_template.format(schema_description=schema_description, **fields)

    def parse_output(self, raw: str) -> OutputT:
        try:
            return self.output_model.model_validate(_extract_json(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            log.error(f"{self.name}: failed to parse/validate LLM response: {e}")
            log.debug(f"Problematic JSON string snippet: {raw[:500]}...")
            raise FlowError(f"{self.name}: malformed response: {e}") from e

    def run(self, client: AIClient, payload: Union[InputT, Mapping[str, Any]]) -> OutputT:
        flow_input = self.validate_input(payload)
        prompt = self.render_prompt(flow_input)
        try:
            raw = client.generate_json(prompt)
        except FlowError:
            raise
        except Exception as e:
            raise FlowError(f"{self.name}: request failed: {e}") from e
        result = self.parse_output(raw)
        log.info(f"{self.name}: completed.")
        return result


WEEKLY_SUMMARY: Flow[WeeklySummaryInput, WeeklySummaryOutput] = Flow(
    "weeklySummary", WeeklySummaryInput, WeeklySummaryOutput, WEEKLY_SUMMARY_PROMPT,
)
PRODUCTIVITY_SUGGESTIONS: Flow[ProductivitySuggestionsInput, ProductivitySuggestionsOutput] = Flow(
    "productivitySuggestions", ProductivitySuggestionsInput, ProductivitySuggestionsOutput,
    PRODUCTIVITY_SUGGESTIONS_PROMPT,
)
CATEGORIZE_ENERGY: Flow[CategorizeEnergyInput, CategorizeEnergyOutput] = Flow(
    "categorizeEnergy", CategorizeEnergyInput, CategorizeEnergyOutput, CATEGORIZE_ENERGY_PROMPT,
)

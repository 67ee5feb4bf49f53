import json

import pytest

from FocusFlow.ai.client import FlowError, UnavailableAIClient
from FocusFlow.ai.flows import (
    CATEGORIZE_ENERGY,
    PRODUCTIVITY_SUGGESTIONS,
    WEEKLY_SUMMARY,
    WeeklySummaryOutput,
    _extract_json,
)

WEEKLY_INPUT = {
    "user_id": "user-1",
    "start_date": "2025-06-02",
    "end_date": "2025-06-08",
    "task_logs": '[{"taskId":"task1","focus":4}]',
}


@pytest.mark.parametrize("text, expected", [
    ('{"a": 1}', {"a": 1}),
    ('```json\n{"a": 1}\n```', {"a": 1}),
    ('```\n[1, 2]\n```', [1, 2]),
])
def test_extract_json(text, expected):
    assert _extract_json(text) == expected


def test_weekly_summary_prompt_contains_inputs(ai_client):
    ai_client.generate_json.return_value = json.dumps({"summary": "Solid week.", "suggestions": "Rest more."})
    result = WEEKLY_SUMMARY.run(ai_client, WEEKLY_INPUT)

    assert result == WeeklySummaryOutput(summary="Solid week.", suggestions="Rest more.")
    prompt = ai_client.generate_json.call_args.args[0]
    assert "User ID: user-1" in prompt
    assert "Start Date: 2025-06-02" in prompt
    assert '[{"taskId":"task1","focus":4}]' in prompt
    assert '"summary"' in prompt  # output schema is described


def test_weekly_summary_rejects_bad_dates(ai_client):
    with pytest.raises(FlowError, match="invalid input"):
        WEEKLY_SUMMARY.run(ai_client, dict(WEEKLY_INPUT, start_date="June 2"))
    ai_client.generate_json.assert_not_called()


def test_malformed_output_is_flow_error(ai_client):
    ai_client.generate_json.return_value = '{"summary": "missing suggestions"}'
    with pytest.raises(FlowError, match="malformed"):
        WEEKLY_SUMMARY.run(ai_client, WEEKLY_INPUT)

    ai_client.generate_json.return_value = "not json at all"
    with pytest.raises(FlowError):
        WEEKLY_SUMMARY.run(ai_client, WEEKLY_INPUT)


def test_transport_error_is_flow_error(ai_client):
    ai_client.generate_json.side_effect = TimeoutError("slow")
    with pytest.raises(FlowError, match="slow"):
        PRODUCTIVITY_SUGGESTIONS.run(ai_client, {"weekly_summary": "ok"})


def test_unavailable_client_is_flow_error():
    with pytest.raises(FlowError):
        CATEGORIZE_ENERGY.run(UnavailableAIClient(), {"energy_input": "tired"})


def test_suggestions_optional_preferences(ai_client):
    ai_client.generate_json.return_value = '```json\n{"suggestions": ["Batch email", "Walk at 3pm"]}\n```'
    result = PRODUCTIVITY_SUGGESTIONS.run(ai_client, {"weekly_summary": "Busy week"})
    assert result.suggestions == ["Batch email", "Walk at 3pm"]
    assert "User Preferences: \n" in ai_client.generate_json.call_args.args[0]


def test_categorize_energy_confidence_range(ai_client):
    ai_client.generate_json.return_value = '{"category": "negative", "confidence": 0.9}'
    assert CATEGORIZE_ENERGY.run(ai_client, {"energy_input": "drained"}).category == "negative"

    ai_client.generate_json.return_value = '{"category": "negative", "confidence": 7}'
    with pytest.raises(FlowError):
        CATEGORIZE_ENERGY.run(ai_client, {"energy_input": "drained"})

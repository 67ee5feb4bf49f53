"""
This file contains all the LLM prompts used in the FocusFlow application.

Each template is filled with `str.format`; the reply must be a single JSON
object matching the schema appended to the prompt.
"""

# --- Weekly Summary ---

WEEKLY_SUMMARY_PROMPT = """
You are an AI productivity assistant. Generate a weekly summary of the user's time allocation and energy levels,
and provide productivity tips based on their patterns.

The task logs are a JSON array. Each entry has:
* `taskId`     – the core task the user was working on
* `focus`      – self-reported focus level from 1 (scattered) to 5 (deep focus)
* `energyText` – optional free-text note about how the user felt
* `category`   – optional energy category (positive, negative or neutral)
* `timestamp`  – UTC instant the log was recorded

User ID: {user_id}
Start Date: {start_date}
End Date: {end_date}
Task Logs: {task_logs}

Respond with a single JSON object following this schema:
{schema_description}
"""

# --- Productivity Suggestions ---

PRODUCTIVITY_SUGGESTIONS_PROMPT = """
You are a productivity expert. Based on the following weekly summary of the user's time and energy logs,
and their stated preferences, provide a list of actionable productivity suggestions.

Weekly Summary: {weekly_summary}
User Preferences: {user_preferences}

Respond with a single JSON object following this schema:
{schema_description}
"""

# --- Energy Categorization ---

CATEGORIZE_ENERGY_PROMPT = """
You are an AI assistant specializing in categorizing energy levels based on user input.

Analyze the following user input and determine the most appropriate energy category (positive, negative, or neutral).
Also, provide a confidence score (0-1) indicating the certainty of your categorization.

User Input: {energy_input}

Respond with a single JSON object following this schema:
{schema_description}
"""

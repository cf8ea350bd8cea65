"""Prompt template loading and rendering."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"%%([A-Z0-9_]+)%%")

DEFAULT_PLANNER_PROMPT = """Your task is to gather information for a letter to be written by Your Printer.

## Instructions

Please use the tools at your disposal to find relevant information about the subject's thoughts, feelings, and emotional wellbeing.

Today's date is %%TODAY_DATE%%.

Once you've collected all the information you need, please think carefully and step-by-step to determine which pieces of information will be most relevant to Your Printer's writing of the letter.

Provide a comprehensive summary of the collected information."""

DEFAULT_KICKOFF_PROMPT = (
    "Today is %%TODAY_DATE%%. Please use the available tools to gather information "
    "about my recent conversations and interactions. Look back %%DAYS_BACK%% days "
    "from today to understand my current emotional state and any relevant context "
    "for writing a supportive letter."
)

DEFAULT_SYSTEM_PROMPT = "You are Your Printer, a wise and caring presence who writes daily supportive letters."

DEFAULT_USER_PROMPT = "Write a supportive letter based on the following information:\n\n%%COLLECTED_INFO%%"


class PromptTemplates(BaseModel):
    """Templates used by a planning run."""
    planner: str = DEFAULT_PLANNER_PROMPT
    kickoff: str = DEFAULT_KICKOFF_PROMPT
    system: str = DEFAULT_SYSTEM_PROMPT
    user: str = DEFAULT_USER_PROMPT


def render_template(template: str, variables: Dict[str, object]) -> str:
    """
    Replace %%NAME%% placeholders.

    Unknown placeholders are left untouched so a later stage can fill them.
    """
    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables and variables[key] is not None:
            return str(variables[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def format_full_date(moment: Optional[datetime] = None) -> str:
    """Format like "Monday, January 1, 2024 at 3:30 PM"."""
    moment = moment or datetime.now()
    hour = moment.strftime("%I").lstrip("0") or "12"
    return f"{moment.strftime('%A, %B')} {moment.day}, {moment.year} at {hour}:{moment.strftime('%M %p')}"


def load_prompt_templates(path: Optional[str] = None) -> PromptTemplates:
    """
    Load prompt templates from YAML.

    Args:
        path: Path to prompts.yaml (default: config/prompts.yaml)

    Returns:
        PromptTemplates; built-in defaults fill anything missing
    """
    if path is None:
        base_path = Path(__file__).parent.parent
        path = base_path / "config" / "prompts.yaml"

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load prompts from {path}, using defaults: {e}")
        return PromptTemplates()

    if not isinstance(data, dict):
        logger.warning(f"Prompt file {path} is not a mapping, using defaults")
        return PromptTemplates()

    templates = {key: value for key, value in data.items() if isinstance(value, str)}
    return PromptTemplates(**templates)

"""Locate the enhanced prompt inside the model's final answer."""

import logging
import re
from typing import Dict, Optional

from .templates import render_template

logger = logging.getLogger(__name__)

UPDATED_PROMPT_PATTERN = re.compile(
    r'<prompt\s+scope="user"\s+for="Your Printer"\s+updated\s*>(.*?)</prompt>',
    re.DOTALL
)


def find_prompt_block(raw_result: str) -> Optional[str]:
    """Return the trimmed contents of the updated-prompt block, if present."""
    match = UPDATED_PROMPT_PATTERN.search(raw_result or "")
    if not match:
        return None
    return match.group(1).strip()


def extract_enhanced_prompt(
    raw_result: str,
    fallback_template: str,
    variables: Optional[Dict[str, object]] = None
) -> str:
    """
    Turn the raw planning result into the enhanced user prompt.

    Uses the delimited block when the model produced one, otherwise places the
    whole raw result into the fallback template's %%COLLECTED_INFO%% slot.

    Args:
        raw_result: Concatenated narrative text of the final model turn
        fallback_template: User prompt template
        variables: Extra template variables (e.g. TODAY_DATE)

    Returns:
        Enhanced prompt text
    """
    block = find_prompt_block(raw_result)
    if block is not None:
        return block

    logger.warning("No updated prompt block in planning result, using template fallback")
    values = dict(variables or {})
    values["COLLECTED_INFO"] = raw_result
    return render_template(fallback_template, values)

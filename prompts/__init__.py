"""Prompt templates and planning result extraction."""

from .templates import PromptTemplates, load_prompt_templates, render_template, format_full_date
from .extraction import extract_enhanced_prompt, find_prompt_block

__all__ = [
    "PromptTemplates",
    "load_prompt_templates",
    "render_template",
    "format_full_date",
    "extract_enhanced_prompt",
    "find_prompt_block",
]

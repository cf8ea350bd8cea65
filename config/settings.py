"""Application settings."""

import os
from typing import Optional
from pydantic import BaseModel


# Environment variable -> settings field, applied when the field is not passed
ENV_OVERRIDES = {
    "PLANNER_DAYS_BACK": "days_to_look_back",
    "PLANNER_MAX_MESSAGES": "max_messages_per_call",
    "PLANNER_MAX_ITERATIONS": "max_iterations",
    "PLANNER_OUTPUT_DIR": "output_dir",
    "PLANNER_PROMPTS_PATH": "prompts_path",
    "CLAUDE_ORG_ID": "claude_org_id",
    "CLAUDE_DATA_PATH": "claude_data_path",
    "CLAUDE_SESSION_FILE": "claude_session_file",
    "IMESSAGE_EXPORTER": "imessage_exporter",
    "IMESSAGE_DB_PATH": "imessage_db_path",
}


class Settings(BaseModel):
    """Application configuration settings."""

    # LLM Provider settings
    llm_provider: str = "anthropic"  # "anthropic" or "openai"
    llm_model: Optional[str] = None  # Override default model
    temperature: float = 0.1
    max_tokens: int = 4096

    # API Keys
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Planning loop
    days_to_look_back: int = 7
    max_iterations: int = 10
    max_tool_workers: int = 4
    max_messages_per_call: Optional[int] = 100

    # Output
    output_dir: str = "planning-output"
    prompts_path: Optional[str] = None  # Defaults to config/prompts.yaml

    # Personal messaging export
    imessage_exporter: str = "imessage-exporter"
    imessage_db_path: Optional[str] = None
    export_timeout: int = 120

    # Claude.ai dialogue source
    claude_base_url: str = "https://claude.ai/api"
    claude_org_id: Optional[str] = None
    claude_session_file: Optional[str] = None
    claude_data_path: Optional[str] = None
    claude_use_authentication: bool = True
    claude_example_fallback: bool = False
    request_timeout: int = 30

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        if "openai_api_key" not in data or data["openai_api_key"] is None:
            data["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

        if "anthropic_api_key" not in data or data["anthropic_api_key"] is None:
            data["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        for env_name, field_name in ENV_OVERRIDES.items():
            if data.get(field_name) is None and os.environ.get(env_name):
                data[field_name] = os.environ[env_name]

        # Unset values fall back to field defaults
        data = {key: value for key, value in data.items() if value is not None}
        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None

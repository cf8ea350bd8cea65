"""Planning phase: explore personal context with tools and write the enhanced prompt."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from config.settings import Settings
from errors import IterationBudgetExceeded

# Data sources
from connectors.base import BaseConnector
from connectors.imessage import IMessageConnector
from connectors.claude_ai import ClaudeAIConnector
from connectors.session import FileSessionProvider

# LLM components
from llm.factory import create_llm_client
from llm.base_client import BaseLLMClient

# Tool-use loop
from react.tools import build_source_tools
from react.registry import ToolRegistry
from react.loop import PlanningLoop

# Prompts and persistence
from prompts.templates import PromptTemplates, load_prompt_templates, render_template, format_full_date
from prompts.extraction import extract_enhanced_prompt
from memory.plan_store import PlanStore
from memory.models import LatestPlan, PlanningResult

logger = logging.getLogger(__name__)

SOURCE_LABELS = {
    "imessage": "iMessage",
    "claude_ai": "Claude AI",
}


class Planner:
    """Runs one planning pass from opening prompt to persisted artifacts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        connectors: Optional[List[BaseConnector]] = None,
        store: Optional[PlanStore] = None,
        templates: Optional[PromptTemplates] = None
    ):
        """
        Initialize planner.

        Args:
            settings: Application settings
            llm_client: LLM client (default: built from settings)
            connectors: Data sources (default: iMessage and Claude AI)
            store: Artifact store (default: settings.output_dir)
            templates: Prompt templates (default: loaded from settings.prompts_path)
        """
        self.settings = settings or Settings()
        self.llm_client = llm_client or self._init_llm_client()
        self.connectors = connectors if connectors is not None else self._init_connectors()
        self.store = store or PlanStore(output_dir=self.settings.output_dir)
        self.templates = templates or load_prompt_templates(self.settings.prompts_path)

        tools = []
        for connector in self.connectors:
            label = SOURCE_LABELS.get(connector.name, connector.name)
            tools.extend(build_source_tools(
                connector, label, max_messages=self.settings.max_messages_per_call
            ))
        self.registry = ToolRegistry(tools, max_workers=self.settings.max_tool_workers)
        logger.info(f"Planner initialized with {len(tools)} tools")

    def _init_llm_client(self) -> BaseLLMClient:
        client = create_llm_client(
            provider=self.settings.llm_provider,
            api_key=self.settings.get_llm_api_key(),
            model=self.settings.llm_model
        )
        logger.info(
            f"LLM client initialized: {client.get_provider_name()} ({client.get_model_name()})"
        )
        return client

    def _init_connectors(self) -> List[BaseConnector]:
        session_provider = FileSessionProvider(session_file=self.settings.claude_session_file)
        return [
            IMessageConnector(
                exporter_path=self.settings.imessage_exporter,
                database_path=self.settings.imessage_db_path,
                timeout=self.settings.export_timeout
            ),
            ClaudeAIConnector(
                session_provider=session_provider,
                organization_id=self.settings.claude_org_id,
                base_url=self.settings.claude_base_url,
                snapshot_path=self.settings.claude_data_path,
                timeout=self.settings.request_timeout,
                use_authentication=self.settings.claude_use_authentication,
                use_example_fallback=self.settings.claude_example_fallback
            ),
        ]

    def build_opening_prompt(self, now: datetime, window_start: datetime) -> str:
        """Planner instructions followed by the kickoff request."""
        today = format_full_date(now)
        variables = {
            "TODAY_DATE": today,
            "SYSTEM_PROMPT": self.templates.system.strip(),
            "USER_PROMPT": self.templates.user.strip(),
            "DAYS_BACK": self.settings.days_to_look_back,
            "WINDOW_START": window_start.date().isoformat(),
            "WINDOW_END": now.date().isoformat(),
            "TOOL_CATALOGUE": self.registry.catalogue(),
        }
        planner_prompt = render_template(self.templates.planner.strip(), variables)
        kickoff = render_template(self.templates.kickoff.strip(), variables)
        return f"{planner_prompt}\n\n{kickoff}"

    def generate_plan(self) -> PlanningResult:
        """
        Run the tool-use loop and persist the result.

        Raises:
            IterationBudgetExceeded: The model never stopped requesting tools
            ModelCallFailed: The LLM call failed
            PersistenceFailed: Artifacts could not be written
        """
        now = datetime.now()
        window_start = now - timedelta(days=self.settings.days_to_look_back)

        loop = PlanningLoop(
            llm_client=self.llm_client,
            registry=self.registry,
            max_iterations=self.settings.max_iterations,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens
        )

        logger.info(f"Starting planning phase with {self.llm_client.get_model_name()}")
        try:
            result = loop.run(self.build_opening_prompt(now, window_start))
        except IterationBudgetExceeded as e:
            if e.transcript is not None:
                self.store.save_debug_transcript(e.transcript, label="exceeded")
            raise

        enhanced_prompt = extract_enhanced_prompt(
            result.narrative_text,
            self.templates.user,
            {"TODAY_DATE": format_full_date(now)}
        )

        return self.store.save(
            narrative_text=result.narrative_text,
            enhanced_prompt=enhanced_prompt,
            transcript=result.transcript,
            lookback_days=self.settings.days_to_look_back,
            window_start=window_start,
            window_end=now,
            iterations=result.iterations,
            model=self.llm_client.get_model_name(),
            generated_at=datetime.now()
        )

    @staticmethod
    def load_latest_plan(output_dir: str = "planning-output") -> LatestPlan:
        """Load the most recent planning result for the writing phase."""
        return PlanStore(output_dir=output_dir).load_latest()

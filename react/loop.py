"""Bounded tool-use loop driving the planning model."""

import json
import logging
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

from errors import IterationBudgetExceeded, ModelCallFailed
from llm.base_client import BaseLLMClient
from schemas.transcript import ToolResultBlock, Transcript, Turn
from .registry import ToolRegistry
from .tools import ToolResult

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    """Planning loop states."""
    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    TERMINATED = "terminated"


class LoopResult(BaseModel):
    """Result of a loop that terminated successfully."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    narrative_text: str
    transcript: Transcript
    iterations: int
    tool_calls: int


class PlanningLoop:
    """
    Multi-turn tool-use loop.

    Each round sends the whole transcript and the tool catalogue to the model.
    A response without tool calls ends the run; otherwise every requested call
    is executed and the results are appended as one user turn. The transcript
    is only ever appended to and is replayed in full every round.
    """

    MAX_ITERATIONS = 10

    def __init__(
        self,
        llm_client: BaseLLMClient,
        registry: ToolRegistry,
        max_iterations: int = MAX_ITERATIONS,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 4096
    ):
        """
        Initialize planning loop.

        Args:
            llm_client: LLM client for reasoning
            registry: Tools available to the model
            max_iterations: Maximum model calls per run (default: 10)
            system_prompt: Optional system prompt for every call
            temperature: Sampling temperature
            max_tokens: Maximum tokens per response
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.llm_client = llm_client
        self.registry = registry
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.state = LoopState.INIT

    def run(self, opening_prompt: str) -> LoopResult:
        """
        Run until the model stops requesting tools.

        Args:
            opening_prompt: Task statement for the first user turn

        Returns:
            LoopResult with the final narrative text and full transcript

        Raises:
            IterationBudgetExceeded: Model still requested tools on the last allowed call
            ModelCallFailed: The LLM client raised
        """
        self.state = LoopState.INIT
        transcript = Transcript()
        transcript.append(Turn.user_text(opening_prompt))
        tool_definitions = self.registry.definitions()
        total_calls = 0

        for iteration in range(self.max_iterations):
            self.state = LoopState.AWAITING_MODEL
            logger.info(f"Planning iteration {iteration + 1}/{self.max_iterations}")

            try:
                response = self.llm_client.chat(
                    turns=list(transcript.turns),
                    tools=tool_definitions,
                    system=self.system_prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens
                )
            except Exception as e:
                self.state = LoopState.TERMINATED
                raise ModelCallFailed(f"Model call failed: {e}") from e

            transcript.append(response.to_turn())
            tool_calls = response.tool_calls

            if not tool_calls:
                self.state = LoopState.TERMINATED
                logger.info(f"Planning complete after {iteration + 1} iterations")
                return LoopResult(
                    narrative_text=response.text,
                    transcript=transcript,
                    iterations=iteration + 1,
                    tool_calls=total_calls
                )

            self.state = LoopState.EXECUTING_TOOLS
            logger.info(f"Executing tools: {[call.name for call in tool_calls]}")
            results = self.registry.dispatch_all(tool_calls)
            total_calls += len(results)
            transcript.append(Turn(
                role="user",
                content=[self._to_block(result) for result in results]
            ))

        self.state = LoopState.TERMINATED
        logger.error(f"Planning exceeded maximum iterations ({self.max_iterations})")
        raise IterationBudgetExceeded(
            f"Planning exceeded maximum iterations ({self.max_iterations})",
            transcript=transcript,
            iterations=self.max_iterations
        )

    @staticmethod
    def _to_block(result: ToolResult) -> ToolResultBlock:
        """Format tool result for LLM consumption."""
        return ToolResultBlock(
            tool_use_id=result.call_id,
            content=json.dumps(result.payload(), indent=2, default=str),
            is_error=not result.ok
        )

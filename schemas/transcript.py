"""Planning transcript: role-tagged turns made of ordered content blocks."""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field


class TextBlock(BaseModel):
    """Narrative text from the user or the model."""
    type: Literal["text"] = "text"
    text: str


class ToolCallBlock(BaseModel):
    """A tool invocation requested by the model."""
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)
    # Set when the provider returned arguments that are not a JSON object
    input_error: Optional[str] = None


class ToolResultBlock(BaseModel):
    """The outcome of one tool invocation, answering a ToolCallBlock."""
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = Annotated[
    Union[TextBlock, ToolCallBlock, ToolResultBlock],
    Field(discriminator="type")
]


class Turn(BaseModel):
    """One turn of the planning conversation."""
    role: Literal["user", "assistant"]
    content: List[ContentBlock] = Field(default_factory=list)

    @classmethod
    def user_text(cls, text: str) -> "Turn":
        return cls(role="user", content=[TextBlock(text=text)])

    @property
    def text(self) -> str:
        """Concatenated text blocks, newline-joined."""
        return "\n".join(b.text for b in self.content if isinstance(b, TextBlock))

    @property
    def tool_calls(self) -> List[ToolCallBlock]:
        return [b for b in self.content if isinstance(b, ToolCallBlock)]

    @property
    def tool_results(self) -> List[ToolResultBlock]:
        return [b for b in self.content if isinstance(b, ToolResultBlock)]


class Transcript:
    """
    Append-only sequence of turns.

    Turns can only be added at the end; the sequence handed out is a tuple, so
    callers cannot edit history in place.
    """

    def __init__(self):
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> None:
        """Append a turn, checking tool results answer the preceding turn."""
        results = turn.tool_results
        if results:
            if not self._turns:
                raise ValueError("Tool results cannot open a transcript")
            requested = {call.id for call in self._turns[-1].tool_calls}
            for result in results:
                if result.tool_use_id not in requested:
                    raise ValueError(
                        f"Tool result {result.tool_use_id} does not answer the preceding turn"
                    )
        self._turns.append(turn.model_copy(deep=True))

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def assistant_turns(self) -> List[Turn]:
        return [t for t in self._turns if t.role == "assistant"]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(self.turns)

    def to_list(self) -> List[Dict[str, Any]]:
        return [t.model_dump(mode="json") for t in self._turns]

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_list(), indent=indent)

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "Transcript":
        transcript = cls()
        for item in data:
            transcript.append(Turn.model_validate(item))
        return transcript

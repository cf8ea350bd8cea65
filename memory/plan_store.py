"""File-based store for planning artifacts."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from errors import PersistedArtifactMissing, PersistenceFailed
from prompts.templates import format_full_date
from schemas.transcript import Transcript
from .models import LatestPlan, PlanMetadata, PlanningResult

logger = logging.getLogger(__name__)

PROMPT_FILENAME = "enhanced-user-prompt.md"
METADATA_FILENAME = "latest-plan-metadata.json"


def _file_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds").replace(":", "-").replace(".", "-")


class PlanStore:
    """
    Persists planning runs.

    Timestamped result and transcript files accumulate for audit. The enhanced
    prompt and metadata record form the "latest" pointer and are replaced
    wholesale, only after every other file of the run has been written.
    """

    def __init__(self, output_dir: str = "planning-output"):
        """
        Initialize plan store.

        Args:
            output_dir: Directory holding all planning artifacts
        """
        self.output_dir = Path(output_dir)

    @property
    def prompt_path(self) -> Path:
        return self.output_dir / PROMPT_FILENAME

    @property
    def metadata_path(self) -> Path:
        return self.output_dir / METADATA_FILENAME

    def _ensure_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceFailed(f"Cannot create output directory {self.output_dir}: {e}") from e

    def save(
        self,
        narrative_text: str,
        enhanced_prompt: str,
        transcript: Transcript,
        lookback_days: int,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        iterations: Optional[int] = None,
        model: Optional[str] = None,
        generated_at: Optional[datetime] = None
    ) -> PlanningResult:
        """
        Write all artifacts of a completed run.

        Raises:
            PersistenceFailed: Any file could not be written; "latest" is untouched
        """
        self._ensure_output_dir()
        generated_at = generated_at or datetime.now()
        stamp = _file_timestamp(generated_at)

        full_result_path = self.output_dir / f"planning-result-{stamp}.md"
        transcript_path = self.output_dir / f"conversation-history-{stamp}.json"

        metadata = PlanMetadata(
            timestamp=generated_at,
            date=format_full_date(generated_at),
            prompt_path=str(self.prompt_path),
            full_result_path=str(full_result_path),
            conversation_path=str(transcript_path),
            days_looked_back=lookback_days,
            window_start=window_start,
            window_end=window_end,
            iterations=iterations,
            model=model
        )

        staged: List[Path] = []
        previous_prompt: Optional[str] = None
        prompt_promoted = False
        try:
            full_result_path.write_text(narrative_text, encoding="utf-8")
            transcript_path.write_text(transcript.to_json(), encoding="utf-8")

            prompt_tmp = self.prompt_path.with_name(f".{PROMPT_FILENAME}.{stamp}.tmp")
            metadata_tmp = self.metadata_path.with_name(f".{METADATA_FILENAME}.{stamp}.tmp")
            staged = [prompt_tmp, metadata_tmp]
            prompt_tmp.write_text(enhanced_prompt, encoding="utf-8")
            metadata_tmp.write_text(
                json.dumps(metadata.model_dump(mode="json", by_alias=True), indent=2),
                encoding="utf-8"
            )

            if self.prompt_path.exists():
                previous_prompt = self.prompt_path.read_text(encoding="utf-8")
            os.replace(prompt_tmp, self.prompt_path)
            prompt_promoted = True
            os.replace(metadata_tmp, self.metadata_path)
        except OSError as e:
            for path in staged:
                path.unlink(missing_ok=True)
            if prompt_promoted:
                self._restore_prompt(previous_prompt)
            raise PersistenceFailed(f"Failed to save planning result: {e}") from e

        logger.info(f"Planning result saved to: {self.prompt_path}")
        logger.info(f"Full analysis saved to: {full_result_path}")
        logger.info(f"Metadata saved to: {self.metadata_path}")

        return PlanningResult(
            narrative_text=narrative_text,
            enhanced_prompt=enhanced_prompt,
            generated_at=generated_at,
            lookback_days=lookback_days,
            window_start=window_start,
            window_end=window_end,
            prompt_path=str(self.prompt_path),
            full_result_path=str(full_result_path),
            transcript_path=str(transcript_path),
            metadata_path=str(self.metadata_path),
            metadata=metadata
        )

    def _restore_prompt(self, previous_prompt: Optional[str]) -> None:
        """Put back the prompt the current metadata points at."""
        try:
            if previous_prompt is None:
                self.prompt_path.unlink(missing_ok=True)
            else:
                self.prompt_path.write_text(previous_prompt, encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not restore previous prompt {self.prompt_path}: {e}")

    def save_debug_transcript(self, transcript: Transcript, label: str = "failed") -> Optional[Path]:
        """Write the transcript of a run that did not complete; never touches "latest"."""
        try:
            self._ensure_output_dir()
            path = self.output_dir / f"conversation-history-{label}-{_file_timestamp(datetime.now())}.json"
            path.write_text(transcript.to_json(), encoding="utf-8")
        except (OSError, PersistenceFailed) as e:
            logger.error(f"Could not save debug transcript: {e}")
            return None
        logger.info(f"Transcript of incomplete run saved to: {path}")
        return path

    def load_latest(self) -> LatestPlan:
        """
        Load the most recent completed run.

        Raises:
            PersistedArtifactMissing: No run completed, or a referenced file is gone
        """
        if not self.metadata_path.exists():
            raise PersistedArtifactMissing("No planning result found. Run the planner first.")

        try:
            data = json.loads(self.metadata_path.read_text(encoding="utf-8"))
            metadata = PlanMetadata.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistedArtifactMissing(f"Planning metadata unreadable: {e}") from e

        for label, path in (
            ("Enhanced user prompt", metadata.prompt_path),
            ("Full planning result", metadata.full_result_path),
            ("Planning transcript", metadata.conversation_path),
        ):
            if not Path(path).exists():
                raise PersistedArtifactMissing(f"{label} file not found: {path}. Run the planner again.")

        try:
            enhanced_prompt = Path(metadata.prompt_path).read_text(encoding="utf-8")
        except OSError as e:
            raise PersistedArtifactMissing(f"Enhanced user prompt unreadable: {e}") from e

        return LatestPlan(enhanced_prompt=enhanced_prompt, metadata=metadata)

"""
Import coordinator.

Runs one import batch end to end:

1. read known project ids, the environment watermark and (when back-filling)
   the model index, once, before fan-out
2. validate the batch
3. process every eligible conversation as an independent unit on a bounded
   thread pool: upsert, then extract -> resolve -> activity insert
4. join the per-unit outcomes into an ImportReport

Units share only the read-only watermark and index. Each returns its own
UnitOutcome; nothing is appended to shared state while units run.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from trackport.config import settings
from trackport.db.connection import SessionFactory
from trackport.db.repositories import ProjectRepository
from trackport.pipeline.extraction import extract_parse_events
from trackport.pipeline.report import ImportReport, UnitOutcome
from trackport.pipeline.resolution import ModelIndex, build_model_index
from trackport.pipeline.validation import ConversationDraft, validate_conversations
from trackport.pipeline.watermark import latest_watermark
from trackport.pipeline.writers import store_conversation, write_activity_batch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchContext:
    """Per-batch inputs computed before fan-out; immutable while units run."""

    env: str
    process_nlu: bool
    watermark: int
    index: Optional[ModelIndex]
    started_at: datetime


class ImportCoordinator:
    """Orchestrates validation, upsert and activity back-fill for a batch."""

    def __init__(
        self,
        session_factory: SessionFactory,
        max_workers: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.max_workers = max_workers or settings.import_max_workers

    def _prepare(self, env: str, process_nlu: bool) -> tuple[list[str], BatchContext]:
        with self.session_factory() as session:
            known_project_ids = ProjectRepository(session).list_ids()
            watermark = latest_watermark(session, env)
            index = build_model_index(session) if process_nlu else None

        context = BatchContext(
            env=env,
            process_nlu=process_nlu,
            watermark=watermark,
            index=index,
            started_at=datetime.now(timezone.utc),
        )
        return known_project_ids, context

    def process_conversation(
        self, draft: ConversationDraft, context: BatchContext
    ) -> UnitOutcome:
        """
        Process one eligible conversation.

        The upsert and the activity insert are separate writes; a failure of
        one does not prevent the other.
        """
        outcome = UnitOutcome(conversation_id=draft.id)

        failure = store_conversation(self.session_factory, draft)
        if failure:
            outcome.failures.append(failure)

        if not context.process_nlu or context.index is None:
            return outcome

        extraction = extract_parse_events(
            draft, context.watermark, context.index, now=context.started_at
        )
        outcome.unresolved = extraction.unresolved

        failure = write_activity_batch(
            self.session_factory, draft.id, extraction.activities
        )
        if failure:
            outcome.failures.append(failure)
        else:
            outcome.activities_written = len(extraction.activities)
        return outcome

    def import_batch(
        self, raw_conversations: list[Any], env: str, process_nlu: bool
    ) -> ImportReport:
        """
        Import a batch of conversations into an environment.

        Args:
            raw_conversations: Conversations as sent by the exporter
            env: Environment tag (already validated)
            process_nlu: Whether to back-fill activity from parse data

        Returns:
            ImportReport; its ``status`` classifies the overall result
        """
        start = time.monotonic()
        known_project_ids, context = self._prepare(env, process_nlu)

        validation = validate_conversations(
            raw_conversations, env, known_project_ids, now=context.started_at
        )
        logger.info(
            f"Importing {len(validation.eligible)} conversation(s) into {env} "
            f"(watermark={context.watermark}, process_nlu={process_nlu})"
        )

        outcomes: list[UnitOutcome] = []
        if validation.eligible:
            workers = min(self.max_workers, len(validation.eligible))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="import-unit"
            ) as executor:
                # map() yields in submission order, so report groups follow input order
                outcomes = list(
                    executor.map(
                        lambda draft: self.process_conversation(draft, context),
                        validation.eligible,
                    )
                )

        report = ImportReport.from_outcomes(
            validation.rejected, outcomes, watermark=context.watermark
        )
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"Import into {env} finished with status={report.status.value}: "
            f"{report.imported} stored, {len(report.rejected)} rejected, "
            f"{report.activities_written} activity row(s), "
            f"{sum(len(group) for group in report.unresolved)} unresolved, "
            f"{len(report.failures)} write failure(s) in {elapsed_ms}ms"
        )
        return report

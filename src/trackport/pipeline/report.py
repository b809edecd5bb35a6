"""
Import report construction.
"""

import enum
from dataclasses import dataclass, field
from typing import Any

from trackport.pipeline.writers import UPSERT, WriteFailure

SUCCESS_MESSAGE = "successfuly imported all conversations"
REJECTED_MESSAGE = (
    "some conversation were not added, either the _id is missing "
    "or projectId does not exist"
)
UNRESOLVED_MESSAGE = (
    "Some parseData have not been added to activity, "
    "the corresponding models could not be found "
)


class ImportStatus(str, enum.Enum):
    """Overall result of one import batch."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"

    @property
    def http_status(self) -> int:
        return {"success": 200, "partial": 206, "failure": 500}[self.value]


@dataclass
class UnitOutcome:
    """Result of processing one eligible conversation."""

    conversation_id: str
    failures: list[WriteFailure] = field(default_factory=list)
    unresolved: list[dict] = field(default_factory=list)
    activities_written: int = 0


@dataclass
class ImportReport:
    """
    Report for one import batch. Built once and discarded after the response.

    ``unresolved`` holds one group per conversation that had unresolved parse
    data, in processing order; each group keeps tracker event order.
    """

    rejected: list[Any] = field(default_factory=list)
    unresolved: list[list[dict]] = field(default_factory=list)
    failures: list[WriteFailure] = field(default_factory=list)
    imported: int = 0
    activities_written: int = 0
    watermark: int = 0

    @classmethod
    def from_outcomes(
        cls, rejected: list[Any], outcomes: list[UnitOutcome], watermark: int = 0
    ) -> "ImportReport":
        """Merge per-unit outcomes at the join point."""
        report = cls(rejected=list(rejected), watermark=watermark)
        for outcome in outcomes:
            report.failures.extend(outcome.failures)
            if outcome.unresolved:
                report.unresolved.append(list(outcome.unresolved))
            report.activities_written += outcome.activities_written
            if not any(f.operation == UPSERT for f in outcome.failures):
                report.imported += 1
        return report

    @property
    def status(self) -> ImportStatus:
        if self.failures:
            return ImportStatus.FAILURE
        if self.rejected or self.unresolved:
            return ImportStatus.PARTIAL
        return ImportStatus.SUCCESS

    def to_response_body(self) -> dict | list:
        """
        Render the HTTP response body for this report.

        Returns:
            List of write errors on failure, the category-separated report on
            partial success, or the success message
        """
        status = self.status
        if status is ImportStatus.FAILURE:
            return [failure.to_dict() for failure in self.failures]
        if status is ImportStatus.PARTIAL:
            body: dict[str, Any] = {}
            if self.rejected:
                body["messageConversation"] = REJECTED_MESSAGE
                body["notValids"] = self.rejected
            if self.unresolved:
                body["messageParseData"] = UNRESOLVED_MESSAGE
                body["invalidParseDatas"] = self.unresolved
            return body
        return {"message": SUCCESS_MESSAGE}

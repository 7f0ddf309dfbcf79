"""Issue ledger.

Tracks resources named by crash analyses. Each resource has one record
whose occurrence count grows with every report; staff mark records fixed
once a patch ships. The count is the priority signal shown to staff.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..analysis.models import ClassificationResult
from .models import IssueRecord, IssueStatus, ReportOutcome
from .store import IssueStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IssueLedger:
    """Deduplicating record of resource crash reports.

    Resource names are matched exactly, so "MyResource" and "myresource"
    are tracked as separate issues.
    """

    def __init__(self, store: IssueStore, notifier=None, clock=_now):
        self.store = store
        self.notifier = notifier
        self._clock = clock

    async def report_issue(self, resource_name: str, cause: str, description: str) -> ReportOutcome:
        """Record one report of a resource issue.

        Args:
            resource_name: Resource named by the crash analysis
            cause: Short title, kept from the first report only
            description: Explanation, kept from the first report only

        Returns:
            ReportOutcome with the stored record and whether it was new

        Raises:
            ValueError: If resource_name is blank
            PersistenceError: If the store could not be updated
        """
        if not resource_name or not resource_name.strip():
            raise ValueError("resource_name is required")

        outcome = await self.store.upsert(resource_name, cause, description, self._clock())

        if outcome.is_new:
            logger.info(f"Logged new resource issue: {resource_name} ({cause})")
            if self.notifier is not None:
                # Record is already stored at this point
                try:
                    await self.notifier.issue_created(outcome.record)
                except Exception as e:
                    logger.warning(f"Notifier failed for new issue {resource_name}: {e}")
        else:
            logger.debug(
                f"Updated existing resource issue: {resource_name} "
                f"(count {outcome.record.occurrence_count})"
            )

        return outcome

    async def record_classification(self, result: ClassificationResult) -> Optional[ReportOutcome]:
        """Report the issue named by a classification, if any."""
        if not result.should_report:
            return None
        return await self.report_issue(result.resource_name, result.cause, result.description)

    async def list_issues(
        self,
        status: Optional[IssueStatus] = None,
        limit: Optional[int] = None,
    ) -> List[IssueRecord]:
        """All issues, most reported first."""
        return await self.store.list_issues(status=status, limit=limit)

    async def prioritized_issues(self) -> List[IssueRecord]:
        """Pending issues, most reported first."""
        return await self.store.list_issues(status=IssueStatus.PENDING)

    async def pending_count(self) -> int:
        return len(await self.prioritized_issues())

    async def get_issue(self, resource_name: str) -> Optional[IssueRecord]:
        return await self.store.get(resource_name)

    async def mark_fixed(self, resource_name: str, fixed_by: str) -> IssueRecord:
        """Mark an issue fixed.

        Calling this on an already fixed issue is a no-op that keeps the
        original fix attribution. fixed_by is not validated.

        Raises:
            IssueNotFound: If no issue is recorded for resource_name
            PersistenceError: If the store could not be updated
        """
        record = await self.store.mark_fixed(resource_name, fixed_by, self._clock())
        logger.info(f"Issue marked as fixed: {resource_name} by {record.fixed_by}")
        return record

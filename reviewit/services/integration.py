"""Integration jobs: accept-and-integrate and push-to-CI-branch.

Both run in the background on a fresh shallow checkout:

1. clone the project repository and hard reset to the target branch;
2. `git am` the current patch, formatted by patch_formatter;
3. push the result.

Accept-and-integrate moves the merge request to accepted, or to needs_rebase
when git am or push fails. Any other error is written to the patch's
integration log and the request goes back to open; it is never re-raised.
The CI push job has no such guard: its errors end the job and are only
logged by the supervisor.

Jobs hold a merge request for as long as git runs. They write back only
what they own (status, their history event, the log or CI hash of the
patch they worked on) onto the record as stored at that moment.
"""

import logging
import traceback
from enum import Enum
from pathlib import Path

from reviewit.errors import NotFound
from reviewit.services import history
from reviewit.services.git import (
    CommandLog,
    GitRunner,
    apply_patch,
    ci_branch_name,
    clone_and_reset,
    push_branch,
    rev_parse_head,
)
from reviewit.services.jobs import Job, JobSupervisor
from reviewit.services.patch_formatter import format_patch
from reviewit.services.store import HistoryEvent, MergeRequest, MergeRequestStatus, Store, StoreConnection
from reviewit.services.workspace import workspace

LOG = logging.getLogger("reviewit.services.integration")

FAILED_TO_INTEGRATE = "failed to integrate merge request"


class IntegrationOutcome(str, Enum):
    """How an accept-and-integrate job ended."""

    ACCEPTED = "accepted"
    NEEDS_REBASE = "needs_rebase"
    REVERTED = "reverted"
    NO_PATCH = "no_patch"


class IntegrationOrchestrator:
    """Launches integration jobs for merge requests kept in store."""

    def __init__(
        self,
        store: Store,
        workspace_base: Path,
        runner: GitRunner | None = None,
        supervisor: JobSupervisor | None = None,
        local_ref: str = "master",
    ) -> None:
        self._store = store
        self._workspace_base = Path(workspace_base)
        self._runner = runner or GitRunner()
        self._supervisor = supervisor or JobSupervisor()
        self._local_ref = local_ref

    @property
    def supervisor(self) -> JobSupervisor:
        return self._supervisor

    def start_integration(self, mr_id: int, reviewer_id: int) -> Job:
        """Start accept-and-integrate for mr_id in the background."""
        LOG.info("MR #%s: integration started by user %s", mr_id, reviewer_id)
        return self._supervisor.spawn(f"integrate-mr-{mr_id}", self.integrate, mr_id, reviewer_id)

    def start_ci_push(self, mr_id: int) -> Job:
        """Start push-to-CI-branch for mr_id in the background."""
        LOG.info("MR #%s: CI push started", mr_id)
        return self._supervisor.spawn(f"ci-push-mr-{mr_id}", self.push_to_ci, mr_id)

    def _prepare(self, conn: StoreConnection, mr: MergeRequest, log: CommandLog, dir_path: Path) -> bool:
        """Clone and reset into dir_path, then apply the current patch."""
        project = conn.get_project(mr.project_id)
        author = conn.get_user(mr.author_id)
        reviewer = conn.get_user(mr.reviewer_id) if mr.reviewer_id is not None else None
        patch_text = format_patch(mr, author, reviewer)
        if patch_text is None:
            return False
        if not clone_and_reset(
            self._runner, log, dir_path.parent, project.repository, dir_path.name, mr.target_branch
        ):
            return False
        return apply_patch(self._runner, log, dir_path, patch_text)

    def integrate(self, mr_id: int, reviewer_id: int) -> IntegrationOutcome:
        """Accept-and-integrate job body (runs in a job thread).

        Writes the command transcript to the integrated patch's
        integration_log whatever happens. The outcome is applied to the
        record as stored at the end of the job, so saves made meanwhile
        (an abandon, a CI push) are kept.
        """
        conn = self._store.connect()
        try:
            mr = conn.get_merge_request(mr_id)
            patch = mr.patch
            if patch is None:
                LOG.warning("MR #%s has no patch, nothing to integrate", mr_id)
                return IntegrationOutcome.NO_PATCH
            log = CommandLog()
            events: list[HistoryEvent] = []
            outcome = IntegrationOutcome.REVERTED
            status = MergeRequestStatus.OPEN
            try:
                with workspace(patch, self._workspace_base) as dir_path:
                    if self._prepare(conn, mr, log, dir_path) and push_branch(
                        self._runner, log, dir_path, self._local_ref, mr.target_branch
                    ):
                        status = MergeRequestStatus.ACCEPTED
                        outcome = IntegrationOutcome.ACCEPTED
                    else:
                        events.append(history.record(mr, reviewer_id, FAILED_TO_INTEGRATE))
                        status = MergeRequestStatus.NEEDS_REBASE
                        outcome = IntegrationOutcome.NEEDS_REBASE
            except Exception as e:
                log.puts("\n\n*** Unexpected error while integrating the merge request ***\n\n")
                log.puts(repr(e))
                log.puts(traceback.format_exc())
                LOG.error("MR #%s: integration crashed: %r", mr_id, e)
                status = MergeRequestStatus.OPEN
                outcome = IntegrationOutcome.REVERTED
            finally:
                self._record_outcome(conn, mr_id, patch.patch_id, status, events, log.text)
            LOG.info("MR #%s: integration finished: %s", mr_id, outcome.value)
            return outcome
        finally:
            conn.close()

    def _record_outcome(
        self,
        conn: StoreConnection,
        mr_id: int,
        patch_id: int,
        status: MergeRequestStatus,
        events: list[HistoryEvent],
        log_text: str,
    ) -> None:
        def change(stored: MergeRequest) -> None:
            stored.status = status
            stored.history_events.extend(events)
            for p in stored.patches:
                if p.patch_id == patch_id:
                    p.integration_log = log_text

        try:
            conn.update_merge_request(mr_id, change)
        except NotFound:
            LOG.warning("MR #%s was deleted while integrating, outcome %s dropped", mr_id, status.value)

    def push_to_ci(self, mr_id: int) -> str | None:
        """Push-to-CI-branch job body (runs in a job thread).

        Returns the pushed commit hash, or None when git am or push failed.
        Unexpected errors propagate.
        """
        conn = self._store.connect()
        try:
            mr = conn.get_merge_request(mr_id)
            patch = mr.patch
            if patch is None:
                return None
            log = CommandLog()
            branch_name = ci_branch_name(mr.mr_id, len(mr.patches))
            with workspace(patch, self._workspace_base) as dir_path:
                if not (
                    self._prepare(conn, mr, log, dir_path)
                    and push_branch(self._runner, log, dir_path, self._local_ref, branch_name)
                ):
                    LOG.info("MR #%s: push to %s failed", mr_id, branch_name)
                    return None
                ref = rev_parse_head(self._runner, log, dir_path)

            def change(stored: MergeRequest) -> None:
                for p in stored.patches:
                    if p.patch_id == patch.patch_id:
                        p.ci_reference_hash = ref

            conn.update_merge_request(mr_id, change)
            LOG.info("MR #%s: pushed %s as %s", mr_id, ref, branch_name)
            return ref
        finally:
            conn.close()

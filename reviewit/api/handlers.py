"""JSON API: token/version authentication, routing and error mapping.

Every /api request carries api_token and cli_version (query string or JSON
body). Handlers return (http_status, payload) and never raise: errors are
turned into {"error": message} responses here.
"""

import logging
import re
from typing import Any, Callable

import reviewit
from reviewit.config import AppConfig
from reviewit.errors import (
    AuthenticationFailure,
    ClientError,
    NotFound,
    StaleRecordError,
    ValidationFailure,
)
from reviewit.services import lifecycle
from reviewit.services.ci_status import ci_status
from reviewit.services.integration import IntegrationOrchestrator
from reviewit.services.store import MergeRequest, Project, Store, StoreConnection, User

LOG = logging.getLogger("reviewit.api.handlers")

NOT_FOUND_MESSAGE = "Can not find the merge request, project or whatever you tried to find/use."

_PROJECT_RE = re.compile(r"^/api/projects/(?P<project_id>\d+)(?P<rest>/.*)?$")
_MR_RE = re.compile(r"^/merge_requests/(?P<mr_id>\d+)(?P<action>/accept|/abandon|/ci_status)?$")

Response = tuple[int, dict[str, Any]]


def _mr_payload(mr: MergeRequest) -> dict[str, Any]:
    payload = mr.model_dump(mode="json", exclude_none=True)
    payload["closed"] = mr.closed
    payload["can_update"] = mr.can_update
    return payload


class ApiContext:
    """Actor and project a request was authenticated for."""

    def __init__(self, conn: StoreConnection, user: User, project: Project) -> None:
        self.conn = conn
        self.user = user
        self.project = project


class ApiApp:
    """Serves /api requests against a store and an integration orchestrator."""

    def __init__(self, config: AppConfig, store: Store, orchestrator: IntegrationOrchestrator) -> None:
        self.config = config
        self.store = store
        self.orchestrator = orchestrator

    def handle(self, method: str, path: str, params: dict[str, Any]) -> Response:
        """Dispatch one request; every error becomes a JSON error response."""
        conn = self.store.connect()
        try:
            return self._dispatch(conn, method, path, params)
        except AuthenticationFailure as e:
            return 401, {"error": str(e)}
        except NotFound:
            return 404, {"error": NOT_FOUND_MESSAGE}
        except ValidationFailure as e:
            return 400, {"error": f"Problem found: {e}", "field": e.field}
        except StaleRecordError as e:
            return 409, {"error": str(e)}
        except ClientError as e:
            return 400, {"error": str(e)}
        except Exception as e:
            LOG.exception("%s %s failed: %s", method, path, e)
            return 500, {"error": "Internal server error"}
        finally:
            conn.close()

    def authenticate(self, conn: StoreConnection, project_id: int, params: dict[str, Any]) -> ApiContext:
        """Resolve the actor from api_token and the project among the actor's projects.

        Raises:
            AuthenticationFailure: unknown token or cli_version mismatch.
            NotFound: project missing or not accessible to the actor.
        """
        user = conn.find_user_by_token(params.get("api_token"))
        if user is None:
            raise AuthenticationFailure("Sorry, invalid token.")
        if params.get("cli_version") != reviewit.__version__:
            raise AuthenticationFailure(
                f"You need Review it! version {reviewit.__version__}, but have {params.get('cli_version')}"
            )
        project = conn.get_project(project_id)
        if user.user_id not in project.user_ids:
            raise NotFound(f"project {project_id} not accessible to user {user.user_id}")
        return ApiContext(conn, user, project)

    def _dispatch(self, conn: StoreConnection, method: str, path: str, params: dict[str, Any]) -> Response:
        m = _PROJECT_RE.match(path)
        if not m:
            raise NotFound(path)
        ctx = self.authenticate(conn, int(m.group("project_id")), params)
        rest = m.group("rest") or "/"
        if rest == "/":
            return self._route(method, {"GET": self.show_project}, ctx)
        if rest == "/merge_requests":
            return self._route(method, {"GET": self.list_merge_requests, "POST": self.create_merge_request}, ctx, params)
        m = _MR_RE.match(rest)
        if not m:
            raise NotFound(path)
        mr = ctx.conn.get_merge_request(int(m.group("mr_id")))
        if mr.project_id != ctx.project.project_id:
            raise NotFound(path)
        action = m.group("action")
        if action is None:
            return self._route(method, {"GET": self.show_merge_request, "PATCH": self.update_merge_request}, ctx, mr, params)
        if action == "/accept":
            return self._route(method, {"PUT": self.accept_merge_request}, ctx, mr)
        if action == "/abandon":
            return self._route(method, {"PUT": self.abandon_merge_request}, ctx, mr)
        return self._route(method, {"GET": self.merge_request_ci_status}, ctx, mr)

    def _route(self, method: str, table: dict[str, Callable[..., Response]], *args: Any) -> Response:
        handler = table.get(method)
        if handler is None:
            raise NotFound(method)
        return handler(*args)

    def show_project(self, ctx: ApiContext) -> Response:
        return 200, {"name": ctx.project.name, "repository": ctx.project.repository, "has_ci": ctx.project.has_ci}

    def list_merge_requests(self, ctx: ApiContext, params: dict[str, Any]) -> Response:
        mrs = ctx.conn.list_merge_requests(ctx.project.project_id)
        chosen = lifecycle.closed(mrs) if params.get("closed") else lifecycle.pending(mrs)
        return 200, {"merge_requests": [_mr_payload(mr) for mr in chosen]}

    def create_merge_request(self, ctx: ApiContext, params: dict[str, Any]) -> Response:
        data = dict(params)
        data.setdefault("target_branch", self.config.client.target_branch)
        mr = lifecycle.create(ctx.conn, ctx.project.project_id, ctx.user.user_id, data)
        if ctx.project.has_ci:
            self.orchestrator.start_ci_push(mr.mr_id)
        return 200, {"mr_id": mr.mr_id}

    def show_merge_request(self, ctx: ApiContext, mr: MergeRequest, params: dict[str, Any]) -> Response:
        return 200, _mr_payload(mr)

    def update_merge_request(self, ctx: ApiContext, mr: MergeRequest, params: dict[str, Any]) -> Response:
        if mr.author_id != ctx.user.user_id:
            raise ClientError("Only the author can update a merge request.")
        lifecycle.update(ctx.conn, mr, params)
        if ctx.project.has_ci:
            self.orchestrator.start_ci_push(mr.mr_id)
        return 200, {"mr_id": mr.mr_id}

    def accept_merge_request(self, ctx: ApiContext, mr: MergeRequest) -> Response:
        job = lifecycle.integrate(ctx.conn, mr, ctx.user.user_id, self.orchestrator)
        return 200, {"mr_id": mr.mr_id, "status": mr.status.value, "started": job is not None}

    def abandon_merge_request(self, ctx: ApiContext, mr: MergeRequest) -> Response:
        lifecycle.abandon(ctx.conn, mr, ctx.user.user_id)
        return 200, {"mr_id": mr.mr_id, "status": mr.status.value}

    def merge_request_ci_status(self, ctx: ApiContext, mr: MergeRequest) -> Response:
        if not ctx.project.has_ci:
            return 200, {"status": "unknown"}
        return 200, ci_status(
            ctx.project,
            mr.patch,
            build_ref=self.config.ci.build_ref,
            timeout=self.config.ci.timeout_seconds,
        )

"""Shared fixtures: a seeded YAML store and a git runner that never runs git."""

import threading
from pathlib import Path

import pytest

from reviewit.services import lifecycle
from reviewit.services.git import GitRunner
from reviewit.services.integration import IntegrationOrchestrator
from reviewit.services.store import MergeRequest, Project, Store, User


class FakeGitRunner(GitRunner):
    """Returns canned (exit_code, output) per git subcommand, records every call.

    results["am"] = (1, "patch does not apply") makes git am fail;
    errors["am"] = RuntimeError(...) makes it raise instead;
    hold("push") parks the next git push until the returned release event is set.
    """

    def __init__(self) -> None:
        self.results: dict[str, tuple[int, str]] = {}
        self.errors: dict[str, Exception] = {}
        self.commands: list[list[str]] = []
        self.applied: list[str] = []
        self._holds: dict[str, tuple[threading.Event, threading.Event]] = {}
        self._lock = threading.Lock()

    def hold(self, sub: str) -> tuple[threading.Event, threading.Event]:
        """Return (reached, release) for the next call of git <sub>."""
        reached, release = threading.Event(), threading.Event()
        with self._lock:
            self._holds[sub] = (reached, release)
        return reached, release

    def _execute(self, cmd: list[str], cwd: Path) -> tuple[int, str]:
        sub = cmd[1] if len(cmd) > 1 else cmd[0]
        with self._lock:
            self.commands.append(list(cmd))
            held = self._holds.pop(sub, None)
        if sub == "am":
            self.applied.append(Path(cmd[2]).read_text(encoding="utf-8"))
        if held is not None:
            reached, release = held
            reached.set()
            release.wait(10)
        if sub in self.errors:
            raise self.errors[sub]
        return self.results.get(sub, (0, ""))


@pytest.fixture
def store(tmp_path: Path) -> Store:
    """Store with Alice (1), Bob (2) and project 1 they both belong to."""
    store = Store(tmp_path / "data")
    with store.connect() as conn:
        conn.save_user(User(user_id=1, name="Alice", email="alice@example.com", api_token="alice-token"))
        conn.save_user(User(user_id=2, name="Bob", email="bob@example.com", api_token="bob-token"))
        conn.save_project(
            Project(
                project_id=1,
                name="demo",
                repository="https://git.example.com/demo.git",
                user_ids=[1, 2],
            )
        )
    return store


@pytest.fixture
def fake_runner() -> FakeGitRunner:
    return FakeGitRunner()


@pytest.fixture
def workspace_base(tmp_path: Path) -> Path:
    path = tmp_path / "workspaces"
    path.mkdir()
    return path


@pytest.fixture
def orchestrator(store: Store, workspace_base: Path, fake_runner: FakeGitRunner) -> IntegrationOrchestrator:
    return IntegrationOrchestrator(store, workspace_base, runner=fake_runner, local_ref="master")


@pytest.fixture
def make_mr(store: Store):
    """Factory: create a merge request by Alice on project 1 targeting main."""

    def _make(**data: str) -> MergeRequest:
        payload = {
            "subject": "Fix bug",
            "commit_message": "Fix bug\n\nLonger explanation.",
            "diff": "--- a/f.txt\n+++ b/f.txt\n@@ -1 +1 @@\n-old\n+new\n",
            "target_branch": "main",
        }
        payload.update(data)
        with store.connect() as conn:
            return lifecycle.create(conn, 1, 1, payload)

    return _make

"""Tests for reviewit.services.git (runner, clone, apply, push) and workspaces."""

import sys
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from reviewit.services.git import (
    CommandLog,
    GitRunner,
    apply_patch,
    ci_branch_name,
    clone_and_reset,
    push_branch,
    rev_parse_head,
)
from reviewit.services.git._run import GitRunnerError, _run_git
from reviewit.services.store import Patch
from reviewit.services.workspace import workspace, workspace_name


class TestGitRunner:
    """GitRunner.run: combined output, exit status, transcript."""

    def test_success_and_combined_output(self, tmp_path: Path) -> None:
        log = CommandLog()
        code = "import sys; print('out'); print('err', file=sys.stderr)"
        result = GitRunner().run([sys.executable, "-c", code], cwd=tmp_path, log=log)
        assert result.succeeded is True
        assert "out" in result.output
        assert "err" in result.output

    def test_non_zero_exit_is_failure_not_exception(self, tmp_path: Path) -> None:
        log = CommandLog()
        result = GitRunner().run([sys.executable, "-c", "raise SystemExit(3)"], cwd=tmp_path, log=log)
        assert result.succeeded is False

    def test_missing_executable_is_failure(self, tmp_path: Path) -> None:
        log = CommandLog()
        result = GitRunner().run(["definitely-not-a-real-binary-xyz"], cwd=tmp_path, log=log)
        assert result.succeeded is False
        assert "command not found" in log.text

    def test_transcript_has_command_and_output(self, tmp_path: Path) -> None:
        log = CommandLog()
        with patch.object(GitRunner, "_execute", return_value=(0, "  Already up to date.\n")):
            GitRunner().run(["git", "status"], cwd=tmp_path, log=log)
        assert log.text == f"$ cd {tmp_path} && git status\nAlready up to date.\n"

    def test_empty_output_not_logged(self, tmp_path: Path) -> None:
        log = CommandLog()
        with patch.object(GitRunner, "_execute", return_value=(0, "   ")):
            GitRunner().run(["git", "status"], cwd=tmp_path, log=log)
        assert log.text == f"$ cd {tmp_path} && git status\n"

    def test_logs_are_per_caller(self, tmp_path: Path) -> None:
        runner = GitRunner()
        a, b = CommandLog(), CommandLog()
        with patch.object(GitRunner, "_execute", return_value=(0, "")):
            runner.run(["git", "one"], cwd=tmp_path, log=a)
            runner.run(["git", "two"], cwd=tmp_path, log=b)
        assert "one" in a.text and "two" not in a.text
        assert "two" in b.text and "one" not in b.text


class TestComposedOperations:
    def test_clone_and_reset_commands(self, tmp_path: Path, fake_runner) -> None:
        ok = clone_and_reset(fake_runner, CommandLog(), tmp_path, "git@host:p.git", "patch1_ab", "stable")
        assert ok is True
        assert fake_runner.commands == [
            ["git", "clone", "--depth", "1", "git@host:p.git", "patch1_ab"],
            ["git", "reset", "--hard", "origin/stable"],
        ]

    def test_clone_failure_skips_reset(self, tmp_path: Path, fake_runner) -> None:
        fake_runner.results["clone"] = (128, "fatal")
        assert clone_and_reset(fake_runner, CommandLog(), tmp_path, "u", "d", "main") is False
        assert len(fake_runner.commands) == 1

    def test_apply_patch_writes_text_and_removes_file(self, tmp_path: Path, fake_runner) -> None:
        text = "From: A <a@x.com>\n\n    msg\n\n--- a\n+++ b\n\n--\nreview it!\n"
        assert apply_patch(fake_runner, CommandLog(), tmp_path, text) is True
        assert fake_runner.applied == [text]
        patch_file = Path(fake_runner.commands[0][2])
        assert not patch_file.exists()

    def test_apply_patch_failure(self, tmp_path: Path, fake_runner) -> None:
        fake_runner.results["am"] = (1, "Patch failed at 0001")
        assert apply_patch(fake_runner, CommandLog(), tmp_path, "x") is False

    def test_push_branch_refspec(self, tmp_path: Path, fake_runner) -> None:
        assert push_branch(fake_runner, CommandLog(), tmp_path, "master", "feature") is True
        assert fake_runner.commands == [["git", "push", "origin", "master:feature"]]

    def test_rev_parse_head(self, tmp_path: Path, fake_runner) -> None:
        fake_runner.results["rev-parse"] = (0, "deadbeef\n")
        assert rev_parse_head(fake_runner, CommandLog(), tmp_path) == "deadbeef"
        fake_runner.results["rev-parse"] = (128, "fatal: not a git repository")
        assert rev_parse_head(fake_runner, CommandLog(), tmp_path) is None

    def test_ci_branch_name(self) -> None:
        assert ci_branch_name(5, 3) == "mr-5-version-3"


class TestRunGit:
    """_run_git (client side): raises GitRunnerError on failure."""

    def test_returns_stdout(self, tmp_path: Path) -> None:
        with patch("reviewit.services.git._run.subprocess.run") as mock_run:
            mock_run.return_value.stdout = "abc\n"
            assert _run_git(["rev-parse", "HEAD"], cwd=tmp_path) == "abc\n"
        assert mock_run.call_args[0][0] == ["git", "rev-parse", "HEAD"]

    def test_missing_git(self, tmp_path: Path) -> None:
        with patch("reviewit.services.git._run.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(GitRunnerError, match="git not found"):
                _run_git(["status"], cwd=tmp_path)


class TestWorkspace:
    """workspace(): fresh directory, removed on every exit path."""

    def _patch(self) -> Patch:
        return Patch(patch_id=12, created_at=datetime.now(UTC))

    def test_name_format(self) -> None:
        name = workspace_name(self._patch())
        assert name.startswith("patch12_")
        assert len(name) == len("patch12_") + 32
        assert workspace_name(self._patch()) != name

    def test_created_empty_and_removed(self, tmp_path: Path) -> None:
        with workspace(self._patch(), tmp_path / "base") as path:
            assert path.is_dir()
            assert path.parent == tmp_path / "base"
            assert list(path.iterdir()) == []
            (path / "file.txt").write_text("x")
        assert not path.exists()

    def test_removed_when_body_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            with workspace(self._patch(), tmp_path) as path:
                (path / "sub").mkdir()
                raise RuntimeError("boom")
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_stale_directory_replaced(self, tmp_path: Path) -> None:
        stale = tmp_path / ("patch12_" + "0" * 32)
        stale.mkdir()
        (stale / "old.txt").write_text("old")
        with patch("reviewit.services.workspace.secrets.token_hex", return_value="0" * 32):
            with workspace(self._patch(), tmp_path) as path:
                assert path == stale
                assert not (path / "old.txt").exists()
        assert not stale.exists()

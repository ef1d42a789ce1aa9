"""Tests for reviewit.config (YAML loading, env substitution, secrets)."""

from pathlib import Path

import pytest

from reviewit.config import load_config


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.yaml")
    assert config.server.port == 3000
    assert config.integration.local_ref == "master"
    assert config.ci.timeout_seconds == 2.0


def test_yaml_sections_loaded(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n  port: 4000\n"
        "store:\n  data_dir: /srv/rme\n"
        "integration:\n  local_ref: main\n"
        "ci:\n  timeout_seconds: 5\n"
    )
    config = load_config(path)
    assert config.server.port == 4000
    assert config.store.data_dir == "/srv/rme"
    assert config.integration.local_ref == "main"
    assert config.ci.timeout_seconds == 5.0


def test_env_substitution_and_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENT_API_TOKEN", "from-env")
    path = tmp_path / "config.yaml"
    path.write_text("client:\n  api_token: ${CLIENT_API_TOKEN}\n")
    config = load_config(path)
    assert config.client.api_token == "from-env"
    assert config.client_token_resolved == "from-env"


def test_token_from_secret_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    secret = tmp_path / "token"
    secret.write_text("from-file\n")
    monkeypatch.delenv("CLIENT_API_TOKEN", raising=False)
    monkeypatch.setenv("CLIENT_API_TOKEN_FILE", str(secret))
    config = load_config(tmp_path / "absent.yaml")
    assert config.client_token_resolved == "from-file"


def test_env_reference_inside_string(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RME_HOST", "rme.example.com")
    monkeypatch.delenv("RME_UNSET", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text('client:\n  api_url: "https://${RME_HOST}/api"\nstore:\n  data_dir: "${RME_UNSET}/data"\n')
    config = load_config(path)
    assert config.client.api_url == "https://rme.example.com/api"
    assert config.store.data_dir == "${RME_UNSET}/data"


def test_unresolved_token_reference_counts_as_unset(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLIENT_API_TOKEN", raising=False)
    monkeypatch.delenv("CLIENT_API_TOKEN_FILE", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("client:\n  api_token: ${CLIENT_API_TOKEN}\n")
    assert load_config(path).client_token_resolved is None


def test_non_mapping_file_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)

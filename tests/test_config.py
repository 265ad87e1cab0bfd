"""Tests for config."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import LotusSettings, RollupSettings, multiaddr_to_url


class TestMultiaddr:
    @pytest.mark.parametrize(
        ("multiaddr", "url"),
        [
            ("/ip4/127.0.0.1/tcp/1234/http", "http://127.0.0.1:1234/rpc/v0"),
            ("/ip4/10.0.0.5/tcp/2345", "http://10.0.0.5:2345/rpc/v0"),
            ("/dns/lotus.example.org/tcp/443/wss", "https://lotus.example.org:443/rpc/v0"),
            ("/dns4/node/tcp/1234/ws\n", "http://node:1234/rpc/v0"),
        ],
    )
    def test_translation(self, multiaddr: str, url: str) -> None:
        assert multiaddr_to_url(multiaddr) == url

    def test_rejects_unknown_form(self) -> None:
        with pytest.raises(ValueError):
            multiaddr_to_url("http://127.0.0.1:1234")


class TestLotusSettings:
    def test_explicit_url_wins(self, tmp_path: Path) -> None:
        (tmp_path / "api").write_text("/ip4/1.1.1.1/tcp/1/http")
        settings = LotusSettings(repo=str(tmp_path), api_url="http://node:1234/rpc/v1", token="abc")
        assert settings.endpoint() == "http://node:1234/rpc/v1"
        assert settings.auth_token() == "abc"

    def test_reads_repo_files(self, tmp_path: Path) -> None:
        (tmp_path / "api").write_text("/ip4/192.168.1.2/tcp/1234/http\n")
        (tmp_path / "token").write_text("secret-token\n")
        settings = LotusSettings(repo=str(tmp_path), api_url="", token="")
        assert settings.endpoint() == "http://192.168.1.2:1234/rpc/v0"
        assert settings.auth_token() == "secret-token"

    def test_empty_repo_falls_back_to_local_node(self, tmp_path: Path) -> None:
        settings = LotusSettings(repo=str(tmp_path), api_url="", token="")
        assert settings.endpoint() == "http://127.0.0.1:1234/rpc/v0"
        assert settings.auth_token() is None


class TestRollupSettings:
    def test_defaults(self) -> None:
        settings = RollupSettings(_env_file=None)
        assert settings.phase_start_epoch == 1623840
        assert settings.recovery_start_epoch == 1381920
        assert settings.excluded_datasets == ["landsat-8"]
        assert settings.piece_cid_cap == 10

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROLLUP_PHASE_START_EPOCH", "1700000")
        assert RollupSettings(_env_file=None).phase_start_epoch == 1700000


class TestLotusSettingsValidation:
    def test_retry_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            LotusSettings(retry_attempts=0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            LotusSettings(rpc_timeout=0)

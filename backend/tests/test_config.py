"""Tests for settings parsing and the command line entry point."""

import pytest

from rentwatch.config import Settings
from rentwatch.core.exceptions import ConfigurationError
from rentwatch.main import build_parser, main

ENV_VARS = ("DATABASE_URL", "TARGET_URLS", "SLACK_WEBHOOK_URL", "MAX_PAGES", "LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No inherited settings and no stray .env file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSettings:
    def test_target_urls_split_on_new_url_only(self, clean_env):
        settings = Settings(
            _env_file=None,
            TARGET_URLS="https://a.example/?r20=1,2,https://b.example/list\nhttps://c.example/,",
        )

        assert settings.get_target_urls() == [
            "https://a.example/?r20=1,2",
            "https://b.example/list",
            "https://c.example/",
        ]

    def test_default_target_urls(self, clean_env):
        urls = Settings(_env_file=None).get_target_urls()

        assert len(urls) == 2
        assert urls[0].startswith("https://suumo.jp/")
        assert urls[1].startswith("https://myhome.nifty.com/")
        assert "r20=1,2" in urls[1]

    def test_empty_target_urls(self, clean_env):
        assert Settings(_env_file=None, TARGET_URLS="").get_target_urls() == []

    def test_target_urls_from_environment(self, clean_env):
        clean_env.setenv("TARGET_URLS", "https://sumaity.com/chintai/tokyo/")
        assert Settings(_env_file=None).get_target_urls() == ["https://sumaity.com/chintai/tokyo/"]

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("postgres://u:p@db:5432/rent", "postgresql+asyncpg://u:p@db:5432/rent"),
            ("postgresql://u:p@db:5432/rent", "postgresql+asyncpg://u:p@db:5432/rent"),
            ("postgresql+asyncpg://u:p@db:5432/rent", "postgresql+asyncpg://u:p@db:5432/rent"),
            ("sqlite+aiosqlite:///rent.db", "sqlite+aiosqlite:///rent.db"),
        ],
    )
    def test_database_url_rewrite(self, clean_env, url, expected):
        assert Settings(_env_file=None, DATABASE_URL=url).DATABASE_URL == expected

    def test_database_url_required(self, clean_env):
        with pytest.raises(ConfigurationError):
            Settings(_env_file=None).require_database_url()

    def test_dotenv_file_is_read(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("MAX_PAGES=4\nSLACK_WEBHOOK_URL=https://hooks.example/x\n")

        settings = Settings()

        assert settings.MAX_PAGES == 4
        assert settings.SLACK_WEBHOOK_URL == "https://hooks.example/x"


class TestCommandLine:
    def test_parser(self):
        args = build_parser().parse_args(
            ["--clear", "--url", "https://suumo.jp/a", "--url", "https://sumaity.com/b"]
        )

        assert args.clear
        assert not args.dry_run
        assert args.urls == ["https://suumo.jp/a", "https://sumaity.com/b"]

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.urls is None
        assert args.log_level is None

    def test_missing_database_url_fails(self, clean_env):
        assert main(["--url", "https://unknown.example/search"]) == 1

    def test_invalid_setting_fails(self, clean_env):
        clean_env.setenv("MAX_PAGES", "many")
        assert main(["--dry-run"]) == 1

    def test_dry_run_with_unsupported_url(self, clean_env, capsys):
        exit_code = main(["--dry-run", "--url", "https://unknown.example/search"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "DRY RUN: 0 listings found" in out
        assert "unsupported URL skipped: https://unknown.example/search" in out

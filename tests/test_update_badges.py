"""End-to-end tests for the BadgeGenerator orchestrator and CLI."""

from __future__ import annotations

import json

import httpx
import pytest

from badge_stats.fetcher import ConfigurationError, NotFoundError
from badge_stats.models import BadgeConfig
from badge_stats.update_badges import BadgeGenerator, load_badge_config, main
from fakes import PACKAGE, TOKEN, USERNAME, FakeApi, github_api, repo_json

GITHUB_FILES = {
    "commits-12mo.svg",
    "repositories.svg",
    "stars-total.svg",
    "followers.svg",
    "forks-total.svg",
}
NPM_FILES = {"npm-package.svg", "npm-downloads.svg"}


def full_api() -> FakeApi:
    api = github_api(
        repos=[
            repo_json("a", stargazers_count=1, language="Go"),
            repo_json("b", stargazers_count=2, forks_count=1, language="Go"),
            repo_json("c", stargazers_count=3, language="Rust"),
        ]
    )
    for period in ("last-day", "last-week", "last-month", "last-year"):
        api.add(
            "GET",
            f"https://api.npmjs.org/downloads/point/{period}/{PACKAGE}",
            httpx.Response(200, json={"downloads": 100}),
        )
    api.add(
        "GET",
        f"https://registry.npmjs.org/{PACKAGE}/latest",
        httpx.Response(200, json={"version": "1.3.0"}),
    )
    api.add("HEAD", f"https://registry.npmjs.org/{PACKAGE}", httpx.Response(200))
    return api


def _files(path) -> set[str]:
    return {p.name for p in path.iterdir()}


class TestBadgeGenerator:
    def test_requires_credentials(self, tmp_path):
        with pytest.raises(ConfigurationError):
            BadgeGenerator(USERNAME, "", output_dir=tmp_path)
        with pytest.raises(ConfigurationError):
            BadgeGenerator("", TOKEN, output_dir=tmp_path)

    @pytest.mark.asyncio
    async def test_generates_github_and_npm_badges(self, tmp_path):
        output = tmp_path / "badges"
        generator = BadgeGenerator(USERNAME, TOKEN, PACKAGE, output_dir=output)

        async with full_api().client() as client:
            snapshot = await generator.generate_all(client)

        assert _files(output) == GITHUB_FILES | NPM_FILES | {"stats.json"}
        assert snapshot.github is not None and snapshot.github.repositories.total_stars == 6
        assert snapshot.npm is not None and snapshot.npm.downloads.last_month == 100

        data = json.loads((output / "stats.json").read_text(encoding="utf-8"))
        assert data["hostingStats"]["profile"]["followers"] == 42
        assert data["registryStats"]["package_name"] == PACKAGE
        assert "generatedAt" in data

    @pytest.mark.asyncio
    async def test_no_package_skips_npm(self, tmp_path):
        api = full_api()
        generator = BadgeGenerator(USERNAME, TOKEN, None, output_dir=tmp_path)

        async with api.client() as client:
            snapshot = await generator.generate_all(client)

        assert snapshot.npm is None
        assert _files(tmp_path) == GITHUB_FILES | {"stats.json"}
        assert not [r for r in api.requests if r.url.host != "api.github.com"]

    @pytest.mark.asyncio
    async def test_missing_package_skips_npm_without_raising(self, tmp_path):
        generator = BadgeGenerator(USERNAME, TOKEN, "leftpad-xyz-404", output_dir=tmp_path)

        async with full_api().client() as client:
            snapshot = await generator.generate_all(client)

        assert snapshot.npm is None
        assert _files(tmp_path) == GITHUB_FILES | {"stats.json"}

    @pytest.mark.asyncio
    async def test_npm_failure_keeps_github_badges(self, tmp_path):
        api = full_api()
        api.add(
            "GET",
            f"https://api.npmjs.org/downloads/point/last-day/{PACKAGE}",
            httpx.Response(500),
        )
        generator = BadgeGenerator(USERNAME, TOKEN, PACKAGE, output_dir=tmp_path)

        async with api.client() as client:
            snapshot = await generator.generate_all(client)

        assert snapshot.npm is None
        assert snapshot.github is not None
        assert _files(tmp_path) == GITHUB_FILES | {"stats.json"}

    @pytest.mark.asyncio
    async def test_malformed_version_metadata_keeps_npm_badges(self, tmp_path):
        api = full_api()
        api.add(
            "GET",
            f"https://registry.npmjs.org/{PACKAGE}/latest",
            httpx.Response(200, json={"version": "1.3.0", "repository": {"url": ["x"]}}),
        )
        generator = BadgeGenerator(USERNAME, TOKEN, PACKAGE, output_dir=tmp_path)

        async with api.client() as client:
            snapshot = await generator.generate_all(client)

        assert snapshot.npm is not None
        assert snapshot.npm.version is None
        assert _files(tmp_path) == GITHUB_FILES | NPM_FILES | {"stats.json"}

    @pytest.mark.asyncio
    async def test_github_failure_is_fatal(self, tmp_path):
        api = full_api()
        api.add("GET", f"https://api.github.com/users/{USERNAME}", httpx.Response(404))
        generator = BadgeGenerator(USERNAME, TOKEN, PACKAGE, output_dir=tmp_path)

        async with api.client() as client:
            with pytest.raises(NotFoundError):
                await generator.generate_all(client)

        assert not (tmp_path / "stats.json").exists()

    @pytest.mark.asyncio
    async def test_dry_run_fetches_but_writes_nothing(self, tmp_path):
        api = full_api()
        output = tmp_path / "badges"
        generator = BadgeGenerator(USERNAME, TOKEN, PACKAGE, dry_run=True, output_dir=output)

        async with api.client() as client:
            snapshot = await generator.generate_all(client)

        assert not output.exists()
        assert snapshot.github is not None and snapshot.npm is not None
        assert set(generator.saved) == GITHUB_FILES | NPM_FILES
        assert api.calls(f"/users/{USERNAME}")

    @pytest.mark.asyncio
    async def test_uses_badge_config(self, tmp_path):
        generator = BadgeGenerator(
            USERNAME,
            TOKEN,
            output_dir=tmp_path,
            badge_config=BadgeConfig(style="flat", colors={"blue": "#000080"}),
        )

        async with full_api().client() as client:
            await generator.generate_all(client)

        followers = (tmp_path / "followers.svg").read_text(encoding="utf-8")
        assert 'fill="#000080"' in followers
        assert ">followers<" in followers


class TestLoadBadgeConfig:
    def test_defaults_without_path(self):
        assert load_badge_config(None) == BadgeConfig()

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "badges.yaml"
        path.write_text("style: flat-square\ncolors:\n  npm: '#FF0000'\n", encoding="utf-8")

        config = load_badge_config(path)

        assert config.style == "flat-square"
        assert config.color("npm") == "#FF0000"


class TestMain:
    def test_missing_credentials_exit_code(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GITHUB_USERNAME", raising=False)
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)

        assert main(["--output-dir", str(tmp_path)]) == 1

    def test_invalid_config_exit_code(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_TOKEN", TOKEN)
        path = tmp_path / "badges.yaml"
        path.write_text("style: rainbow\n", encoding="utf-8")

        assert main([USERNAME, "--config", str(path), "--output-dir", str(tmp_path)]) == 1

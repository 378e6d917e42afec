"""Pydantic models for profile statistics and badge configuration."""

from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TOP_LANGUAGES = 5


class Quota(BaseModel):
    """Remaining API calls in the current rate-limit window."""

    model_config = ConfigDict(frozen=True)

    remaining: int = Field(ge=0)
    limit: int = Field(gt=0)
    reset_at: datetime

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Quota":
        core = data["resources"]["core"]
        return cls(
            remaining=core["remaining"],
            limit=core["limit"],
            reset_at=datetime.fromtimestamp(core["reset"], tz=timezone.utc),
        )


class Profile(BaseModel):
    """Public profile of a GitHub user."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    bio: str | None = None
    company: str | None = None
    location: str | None = None
    followers: int = Field(default=0, ge=0)
    following: int = Field(default=0, ge=0)
    public_repos: int = Field(default=0, ge=0)
    public_gists: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            name=data.get("name"),
            bio=data.get("bio"),
            company=data.get("company"),
            location=data.get("location"),
            followers=data.get("followers", 0),
            following=data.get("following", 0),
            public_repos=data.get("public_repos", 0),
            public_gists=data.get("public_gists", 0),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class Repository(BaseModel):
    """A repository owned by the user, reduced to the fields we aggregate."""

    model_config = ConfigDict(frozen=True)

    name: str
    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    watchers: int = Field(default=0, ge=0)
    size_kb: int = Field(default=0, ge=0)
    language: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Repository":
        return cls(
            name=data["name"],
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            watchers=data.get("watchers_count", 0),
            size_kb=data.get("size", 0),
            language=data.get("language"),
        )


class LanguageCount(BaseModel):
    """Number of repositories whose primary language is ``language``."""

    model_config = ConfigDict(frozen=True)

    language: str
    count: int = Field(ge=0)


class RepositoryStats(BaseModel):
    """Aggregate statistics over all owned repositories."""

    model_config = ConfigDict(frozen=True)

    total_repos: int = 0
    total_stars: int = 0
    total_forks: int = 0
    total_watchers: int = 0
    total_size_kb: int = 0
    top_languages: list[LanguageCount] = Field(default_factory=list)

    @classmethod
    def from_repositories(cls, repos: list[Repository]) -> "RepositoryStats":
        """
        Reduce a sequence of repositories into totals and a language histogram.

        Repositories without a primary language are left out of the histogram.
        Languages with equal counts keep the order they were first seen in.
        """
        languages = Counter(repo.language for repo in repos if repo.language)
        # most_common() sorts stably, so ties stay in encounter order
        top = [
            LanguageCount(language=language, count=count)
            for language, count in languages.most_common(TOP_LANGUAGES)
        ]
        return cls(
            total_repos=len(repos),
            total_stars=sum(repo.stars for repo in repos),
            total_forks=sum(repo.forks for repo in repos),
            total_watchers=sum(repo.watchers for repo in repos),
            total_size_kb=sum(repo.size_kb for repo in repos),
            top_languages=top,
        )


class CommitCount(BaseModel):
    """
    Commits authored by a user since a cutoff date.

    The count is always an estimate: the search API may cap its reported
    total, and the repository scan only looks at a few recent repositories
    with a per-repository page limit, making it a lower bound.
    """

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    since: date
    method: Literal["search", "repository_scan"]
    repositories_scanned: int | None = None
    is_lower_bound: bool = False

    def format_total(self) -> str:
        """Format the count with thousands separators, marking lower bounds."""
        text = f"{self.total:,}"
        return f"{text}+" if self.is_lower_bound else text


class DownloadCounts(BaseModel):
    """npm download counts over the standard trailing periods."""

    model_config = ConfigDict(frozen=True)

    last_day: int = Field(default=0, ge=0)
    last_week: int = Field(default=0, ge=0)
    last_month: int = Field(default=0, ge=0)
    last_year: int = Field(default=0, ge=0)


class VersionInfo(BaseModel):
    """Metadata of the latest published version of a package."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    description: str | None = None
    license: str | None = None
    homepage: str | None = None
    repository_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "VersionInfo":
        repository = data.get("repository")
        if isinstance(repository, dict):
            repository_url = repository.get("url")
        else:
            repository_url = repository

        license_data = data.get("license")
        if isinstance(license_data, dict):
            license_data = license_data.get("type")

        return cls(
            version=data.get("version"),
            description=data.get("description"),
            license=license_data,
            homepage=data.get("homepage"),
            repository_url=repository_url,
        )


class GitHubReport(BaseModel):
    """Everything fetched from GitHub in one run."""

    model_config = ConfigDict(frozen=True)

    username: str
    profile: Profile
    repositories: RepositoryStats
    commits: CommitCount
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    fetch_duration: float = 0.0  # seconds


class NpmReport(BaseModel):
    """Everything fetched from npm in one run."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    downloads: DownloadCounts
    version: VersionInfo | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    fetch_duration: float = 0.0  # seconds


class StatsSnapshot(BaseModel):
    """Combined snapshot written next to the badges as stats.json."""

    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        serialization_alias="generatedAt",
    )
    github: GitHubReport | None = Field(default=None, serialization_alias="hostingStats")
    npm: NpmReport | None = Field(default=None, serialization_alias="registryStats")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


DEFAULT_COLORS = {
    "blue": "#0E75B6",
    "green": "#2ECC40",
    "yellow": "#FFD700",
    "orange": "#FF851B",
    "purple": "#B10DC9",
    "red": "#DC143C",
    "teal": "#39CCCC",
    "github": "#181717",
    "npm": "#CB3837",
}


class BadgeConfig(BaseModel):
    """Style and palette handed to the badge renderer."""

    model_config = ConfigDict(frozen=True)

    style: Literal["flat", "flat-square", "plastic", "for-the-badge"] = "for-the-badge"
    label_color: str = "#555555"
    colors: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_COLORS))

    def color(self, name: str) -> str:
        """Resolve a palette name, falling back to the default palette or the raw value."""
        return self.colors.get(name) or DEFAULT_COLORS.get(name, name)

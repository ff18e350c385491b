import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def load_environment() -> Optional[str]:
    """Load the nearest .env file into the process environment, if there is one"""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
        logger.info(f"Loaded .env from: {dotenv_path}")
        return dotenv_path
    logger.warning("Could not find .env file, using process environment only")
    return None


class AzureConfig(BaseSettings):
    pat: str = Field(..., description="Azure DevOps PAT, used as the basic-auth password")
    username: str = Field(..., description="Basic-auth user name and default commit author")
    organization: str = Field(..., description="Azure DevOps organization name")
    project: str = Field(..., description="Azure DevOps project name")
    host: str = Field("https://dev.azure.com", description="Azure DevOps host URL")

    # Commit search
    commit_author: Optional[str] = Field(None, description="Commit author, defaults to username")
    from_date: str = Field("2019-01-01", description="Earliest commit date")
    commit_page_size: int = Field(1_000_000, description="$top passed to the commit search")

    # Work item query
    work_item_types: List[str] = Field(default_factory=lambda: ["User Story", "Bug", "Task"])
    closed_since: str = Field("2019-01-01T00:00:00.0000000", description="Minimum target closed date")
    history_contains: Optional[str] = Field(None, description="Words matched against target history")
    assigned_to: Optional[str] = Field(None, description="Target assignee, defaults to username")
    batch_size: int = Field(200, gt=0, le=200, description="Work items per batch request (API limit is 200)")

    # API versions
    git_api_version: str = "7.1-preview.1"
    wiql_api_version: str = "6.0"
    work_items_api_version: str = "7.1-preview.1"

    # Output
    output_dir: Path = Field(Path("out"), description="Root directory for dumps")

    model_config = SettingsConfigDict(
        env_prefix="DEVOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def api_base_url(self) -> str:
        return f"{self.host.rstrip('/')}/{self.organization}/{self.project}/_apis/"

    @property
    def author(self) -> str:
        return self.commit_author or self.username

    @property
    def assignee(self) -> str:
        return self.assigned_to or self.username

    @property
    def commits_dir(self) -> Path:
        return self.output_dir / "commits"

    @property
    def work_items_file(self) -> Path:
        return self.output_dir / "wi.json"

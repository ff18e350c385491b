"""
Commit Dumper module.

Dumps the commits of one author from every enabled repository of the
project, one JSON file per repository.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import requests

from devops_export.config.config import AzureConfig
from devops_export.utils.azure_client import AzureDevOpsClient
from devops_export.utils.export_ledger import ExportLedger
from devops_export.utils.json_utils import save_json_data

# Marks a repository that was searched but had no matching commits
EMPTY_RESULT_PREFIX = "@"


def commit_file_name(repository_name: str, empty: bool = False) -> str:
    prefix = EMPTY_RESULT_PREFIX if empty else ""
    return f"{prefix}{repository_name}.json"


class CommitDumper:
    """
    Writes <repository>.json (or @<repository>.json when nothing matched)
    for every enabled repository that has not been dumped yet.
    """

    def __init__(self, client: AzureDevOpsClient, config: AzureConfig):
        self.client = client
        self.config = config
        self.commits_dir = Path(config.commits_dir)
        self.ledger = ExportLedger(Path(config.output_dir) / "commits.ledger.json")
        self.logger = logging.getLogger(__name__)

    def is_dumped(self, repository: Dict[str, Any]) -> bool:
        """
        Check whether a repository already has an output file.

        A file recorded in the ledger as written by another repository does
        not count. A ledger entry whose file was deleted is dropped, so the
        repository is fetched again.
        """
        repository_id = repository["id"]
        if self.ledger.has(repository_id, self.commits_dir):
            return True
        if self.ledger.has(repository_id):
            self.logger.info(f"Dump file of repository {repository['name']} was removed, fetching again")
            self.ledger.forget(repository_id)

        for file_name in (commit_file_name(repository["name"]), commit_file_name(repository["name"], empty=True)):
            if (self.commits_dir / file_name).exists() and not self.ledger.is_claimed_by_other(file_name, repository_id):
                return True
        return False

    def _target_file_name(self, repository: Dict[str, Any], empty: bool) -> str:
        file_name = commit_file_name(repository["name"], empty=empty)
        if self.ledger.is_claimed_by_other(file_name, repository["id"]):
            fallback = f"{EMPTY_RESULT_PREFIX if empty else ''}{repository['name']}.{repository['id']}.json"
            self.logger.warning(
                f"File {file_name} already belongs to repository {self.ledger.owner_of(file_name)}, "
                f"writing {fallback} instead"
            )
            return fallback
        return file_name

    async def dump_commits_from_all_repositories(self) -> Dict[str, List[str]]:
        """
        Dump commits for all enabled repositories.

        Per-repository request failures are logged and skipped; they never
        abort the run.

        Returns:
            Repository names grouped by outcome
        """
        self.commits_dir.mkdir(parents=True, exist_ok=True)

        summary = {"dumped": [], "empty": [], "skipped": [], "missing": [], "failed": []}

        repositories = await self.client.get_repositories()
        enabled = [repository for repository in repositories if not repository.get("isDisabled")]
        self.logger.info(f"Found {len(enabled)} enabled repositories out of {len(repositories)}")

        for repository in enabled:
            name = repository["name"]
            if self.is_dumped(repository):
                self.logger.info(f"Dump for repository {name} already exists, omitting")
                summary["skipped"].append(name)
                continue

            self.logger.info(f"Processing repository: {name}")
            try:
                commits_data = await self.client.get_commits(
                    repository["id"], self.config.author, self.config.from_date
                )
            except requests.HTTPError as e:
                if e.response is not None and e.response.status_code == 404:
                    self.logger.warning(f"Cannot query repository {name} for commits - it does not exist")
                    summary["missing"].append(name)
                else:
                    self.logger.error(f"Unknown error for repository {name}: {str(e)}")
                    summary["failed"].append(name)
                continue
            except Exception as e:
                self.logger.error(f"Unknown error for repository {name}: {str(e)}")
                summary["failed"].append(name)
                continue

            count = commits_data.get("count", 0)
            file_name = self._target_file_name(repository, empty=not count)
            save_json_data(commits_data.get("value", []), self.commits_dir / file_name)
            self.ledger.record(repository["id"], name, file_name, count)

            summary["dumped" if count else "empty"].append(name)
            self.logger.info(f"Saved {count} commits of repository {name} to {file_name}")

        self.logger.info(
            f"Commit dump finished: {len(summary['dumped'])} dumped, {len(summary['empty'])} empty, "
            f"{len(summary['skipped'])} skipped, {len(summary['missing'])} missing, {len(summary['failed'])} failed"
        )
        return summary

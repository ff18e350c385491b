import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from msrest.authentication import BasicAuthentication

from devops_export.config.config import AzureConfig


class AzureDevOpsClient:
    """
    Thin REST client for the project-scoped Azure DevOps endpoints used by the export.

    Requests are issued one at a time; any non-2xx response raises requests.HTTPError.
    """

    def __init__(self, config: AzureConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session
        self.logger = logging.getLogger(__name__)

    @property
    def session(self) -> requests.Session:
        if not self._session:
            # Log configuration details for debugging (mask the PAT)
            masked_pat = self.config.pat[:4] + "..." if self.config.pat else "None"
            self.logger.info("Connecting to Azure DevOps with:")
            self.logger.info(f"  Base URL: {self.config.api_base_url}")
            self.logger.info(f"  Username: {self.config.username}")
            self.logger.info(f"  PAT (masked): {masked_pat}")

            credentials = BasicAuthentication(self.config.username, self.config.pat)
            self._session = credentials.signed_session()
            self._session.headers.update({"Content-Type": "application/json"})
        return self._session

    def _url(self, path: str) -> str:
        return urljoin(self.config.api_base_url, path)

    def _get(self, path: str) -> Dict[str, Any]:
        api_url = self._url(path)
        self.logger.debug(f"Sending GET request to {api_url}")
        response = self.session.get(api_url)
        self.logger.debug(f"API Response Status: {response.status_code}")
        response.raise_for_status()
        return response.json()

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        api_url = self._url(path)
        self.logger.debug(f"Sending POST request to {api_url}")
        response = self.session.post(api_url, json=body)
        self.logger.debug(f"API Response Status: {response.status_code}")
        response.raise_for_status()
        return response.json()

    async def get_repositories(self, include_hidden: bool = False) -> List[Dict[str, Any]]:
        """
        List the repositories of the configured project.

        Args:
            include_hidden: Whether hidden repositories are listed too

        Returns:
            List of repository records ({id, name, isDisabled, ...})
        """
        path = (
            "git/repositories?includeLinks=false&includeAllUrls=false"
            f"&includeHidden={str(include_hidden).lower()}"
            f"&api-version={self.config.git_api_version}"
        )
        data = self._get(path)
        repositories = data.get("value", [])
        self.logger.info(f"API RESULT: Retrieved {len(repositories)} repositories from project '{self.config.project}'")
        return repositories

    async def get_commits(self, repository_id: str, author: str, from_date: str) -> Dict[str, Any]:
        """
        Search the commits of one repository by author and start date.

        Returns:
            The raw response, {"count": int, "value": [commit, ...]}
        """
        path = (
            f"git/repositories/{repository_id}/commitsbatch"
            f"?$top={self.config.commit_page_size}&api-version={self.config.git_api_version}"
        )
        return self._post(path, {"author": author, "fromDate": from_date})

    async def query_work_item_links(self, query: str) -> List[Dict[str, Any]]:
        """Run a WIQL link query and return its workItemRelations"""
        path = f"wit/wiql?api-version={self.config.wiql_api_version}"
        data = self._post(path, {"query": query})
        relations = data.get("workItemRelations", [])
        self.logger.info(f"API RESULT: WIQL query returned {len(relations)} work item relations")
        return relations

    async def get_work_items_batch(self, work_item_ids: List[int], expand: str = "all") -> List[Dict[str, Any]]:
        """Fetch full work item records for at most 200 ids"""
        path = f"wit/workitemsbatch?api-version={self.config.work_items_api_version}"
        data = self._post(path, {"$expand": expand, "ids": list(work_item_ids)})
        return data.get("value", [])

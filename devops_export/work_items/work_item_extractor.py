"""
Work Item Extractor module.

This module runs the hierarchical work item link query and resolves the
linked work items from Azure DevOps in batches.
"""

import logging
from typing import List, Dict, Any, Sequence

from devops_export.config.config import AzureConfig
from devops_export.utils.azure_client import AzureDevOpsClient


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_hierarchy_query(config: AzureConfig) -> str:
    """
    Build the WIQL query returning parent/child links between work items
    closed since config.closed_since that the configured person worked on.
    """
    types = ", ".join(_quote(t) for t in config.work_item_types)

    involvement = [f"Target.[System.AssignedTo] = {_quote(config.assignee)}"]
    if config.history_contains:
        involvement.insert(0, f"Target.[System.History] contains words {_quote(config.history_contains)}")

    return (
        "select [System.Id], [System.WorkItemType], [System.Title] "
        "from WorkItemLinks "
        f"where (Source.[System.TeamProject] = @project and Source.[System.WorkItemType] in ({types})) "
        "and ([System.Links.LinkType] = 'System.LinkTypes.Hierarchy-Forward') "
        f"and (Target.[System.TeamProject] = @project and Target.[System.WorkItemType] in ({types}) "
        f"and Target.[Microsoft.VSTS.Common.ClosedDate] >= {_quote(config.closed_since)} "
        f"and ({' or '.join(involvement)})) "
        "order by [Microsoft.VSTS.Common.ClosedDate] "
        "mode (Recursive, ReturnMatchingChildren)"
    )


def split_into_chunks(items: Sequence[Any], size: int) -> List[List[Any]]:
    """Split items into consecutive slices of at most size elements"""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class WorkItemExtractor:
    """
    Extracts work item links and work item details from Azure DevOps.
    """

    def __init__(self, azure_client: AzureDevOpsClient, config: AzureConfig):
        """
        Initialize the WorkItemExtractor.

        Args:
            azure_client: The Azure DevOps client
            config: Export configuration (query filters, batch size)
        """
        self.client = azure_client
        self.config = config
        self.logger = logging.getLogger(__name__)

    async def get_work_item_relations(self) -> List[Dict[str, Any]]:
        """
        Run the hierarchical link query.

        Returns:
            List of relations, {"source": {"id"}, "target": {"id"}}; roots have no source
        """
        query = build_hierarchy_query(self.config)
        self.logger.debug(f"WIQL query: {query}")
        return await self.client.query_work_item_links(query)

    def extract_work_item_ids(self, relations: List[Dict[str, Any]]) -> List[int]:
        """
        Extract the distinct target ids of the relations, in first-seen order.
        """
        seen = set()
        work_item_ids = []
        for relation in relations:
            work_item_id = relation["target"]["id"]
            if work_item_id not in seen:
                seen.add(work_item_id)
                work_item_ids.append(work_item_id)
        return work_item_ids

    async def extract_work_items_batch(self, work_item_ids: List[int]) -> List[Dict[str, Any]]:
        """
        Extract work items in batches of config.batch_size (API limit is 200).

        Args:
            work_item_ids: List of work item IDs

        Returns:
            List of work items with all fields expanded
        """
        if not work_item_ids:
            self.logger.warning("No work item IDs provided for extraction")
            return []

        batches = split_into_chunks(work_item_ids, self.config.batch_size)
        self.logger.info(f"Extracting {len(work_item_ids)} work items in {len(batches)} batches")

        results = []
        for batch_num, batch in enumerate(batches, start=1):
            self.logger.info(f"Processing batch {batch_num}/{len(batches)} with {len(batch)} work items")
            batch_results = await self.client.get_work_items_batch(batch, expand="all")
            results.extend(batch_results)
            self.logger.info(f"Retrieved {len(batch_results)} work items in batch {batch_num}")

        self.logger.info(f"Retrieved a total of {len(results)} work items")
        return results

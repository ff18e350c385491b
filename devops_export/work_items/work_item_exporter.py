"""
Work Item Exporter module.

Runs the link query, resolves the work items and writes the tree to a
single JSON file. Errors are left to the caller.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from devops_export.config.config import AzureConfig
from devops_export.utils.azure_client import AzureDevOpsClient
from devops_export.utils.json_utils import save_json_data
from devops_export.work_items.work_item_extractor import WorkItemExtractor
from devops_export.work_items.work_item_processor import WorkItemProcessor


class WorkItemExporter:

    def __init__(self, client: AzureDevOpsClient, config: AzureConfig):
        self.output_file = Path(config.work_items_file)
        self.extractor = WorkItemExtractor(client, config)
        self.processor = WorkItemProcessor()
        self.logger = logging.getLogger(__name__)

    async def dump_all_work_items(self) -> Optional[List[Dict[str, Any]]]:
        """
        Export the work item tree unless the output file already exists.

        Returns:
            The exported tree, or None when the export was skipped
        """
        if self.output_file.exists():
            self.logger.info("Work items already dumped")
            return None

        self.logger.info("Dumping work items")
        relations = await self.extractor.get_work_item_relations()
        work_item_ids = self.extractor.extract_work_item_ids(relations)
        work_items = await self.extractor.extract_work_items_batch(work_item_ids)
        tree = self.processor.build_tree(relations, work_items)

        self.logger.info("done")
        save_json_data(tree, self.output_file)
        self.logger.info(f"Saved work item tree to {self.output_file}")
        return tree

import asyncio
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from devops_export.commits.commit_dumper import CommitDumper
from devops_export.config.config import AzureConfig, load_environment
from devops_export.utils.azure_client import AzureDevOpsClient
from devops_export.work_items.work_item_exporter import WorkItemExporter

logger = logging.getLogger(__name__)

def setup_logging(logs_dir: str = "logs"):
    # Create logs directory if it doesn't exist
    os.makedirs(logs_dir, exist_ok=True)

    # Generate timestamp for log filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(logs_dir, f"export_{timestamp}.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler with rotation (100 MB per file, 10 backup files)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=100 * 1024 * 1024,  # 100 MB
        backupCount=10
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    return log_file

async def run_export(config: AzureConfig, client: Optional[AzureDevOpsClient] = None):
    """Dump commits, then work items, one after the other"""
    client = client or AzureDevOpsClient(config)

    await CommitDumper(client, config).dump_commits_from_all_repositories()
    await WorkItemExporter(client, config).dump_all_work_items()

async def main() -> int:
    try:
        log_file = setup_logging(os.environ.get("DEVOPS_LOG_DIR", "logs"))
        logger.info("Starting Azure DevOps export")
        logger.info(f"Logs will be saved to: {log_file}")

        load_environment()
        config = AzureConfig()
        logger.info(f"Loaded configuration for project: {config.organization}/{config.project}")
        logger.info(f"Output directory: {config.output_dir}")

        await run_export(config)

        logger.info("Azure DevOps export has been completed successfully")
        return 0
    except Exception as e:
        logger.error(f"Error during export: {str(e)}", exc_info=True)
        return 1

def run():
    sys.exit(asyncio.run(main()))

if __name__ == "__main__":
    run()

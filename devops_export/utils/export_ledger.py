"""
Ledger of finished repository dumps.

Output files alone are an ambiguous record: the empty-result file of
repository "foo" and the regular file of a repository named "@foo" share
the name "@foo.json". The ledger remembers which repository id wrote which
file so that such names are not mistaken for each other.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class ExportLedger:
    """Maps repository ids to the output file they produced."""

    def __init__(self, ledger_file: Path):
        """
        Initialize the ledger.

        Args:
            ledger_file: Path of the JSON file backing the ledger
        """
        self.ledger_file = Path(ledger_file)
        self.entries: Dict[str, Dict] = self._load()

    def _load(self) -> Dict[str, Dict]:
        if not self.ledger_file.exists():
            return {}
        try:
            with open(self.ledger_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            logger.info(f"Loaded export ledger from {self.ledger_file}")
            return data.get("repositories", {})
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load export ledger: {e}. Falling back to output files only.")
            return {}

    def save(self):
        self.ledger_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.ledger_file, 'w', encoding='utf-8') as f:
            json.dump(
                {"last_updated": datetime.now().isoformat(), "repositories": self.entries},
                f,
                indent=2,
                ensure_ascii=False,
            )
        logger.debug(f"Export ledger saved to {self.ledger_file}")

    def has(self, repository_id: str, directory: Optional[Path] = None) -> bool:
        """
        Check whether the ledger knows repository_id.

        With a directory, the recorded output file must also still exist there.
        """
        entry = self.entries.get(repository_id)
        if entry is None:
            return False
        if directory is None:
            return True
        return (Path(directory) / entry["file"]).exists()

    def forget(self, repository_id: str):
        if self.entries.pop(repository_id, None) is not None:
            self.save()

    def owner_of(self, file_name: str) -> Optional[str]:
        """Return the id of the repository that wrote file_name, if the ledger knows it."""
        for repository_id, entry in self.entries.items():
            if entry.get("file") == file_name:
                return repository_id
        return None

    def is_claimed_by_other(self, file_name: str, repository_id: str) -> bool:
        owner = self.owner_of(file_name)
        return owner is not None and owner != repository_id

    def record(self, repository_id: str, name: str, file_name: str, commit_count: int):
        self.entries[repository_id] = {
            "name": name,
            "file": file_name,
            "count": commit_count,
            "dumped_at": datetime.now().isoformat(),
        }
        self.save()

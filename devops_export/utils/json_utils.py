import json
from datetime import datetime
from pathlib import Path
from typing import Any, Union

class DateTimeEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)

def save_json_data(data: Any, file_path: Union[str, Path]) -> Path:
    """Save data as pretty-printed JSON, creating the parent directory if needed"""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, cls=DateTimeEncoder, indent=2, ensure_ascii=False)
    return path

def load_json_data(file_path: Union[str, Path]) -> Any:
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)

"""Recorded request/response examples, loaded from a YAML file.

The file maps "resource#method" keys to lists of recordings:

    users#show:
      - verb: GET
        path: /api/users/1
        code: 200
        response_data: {id: 1, name: Ann}
"""

import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def format_example(record: dict) -> str:
    """Render one recording as a text block."""
    lines = [f"{record.get('verb', 'GET')} {record.get('path', '')}"]
    if record.get("request_data") is not None:
        lines.append(_dump(record["request_data"]))
    lines.append(str(record.get("code", 200)))
    if record.get("response_data") is not None:
        lines.append(_dump(record["response_data"]))
    return "\n".join(lines)


def _dump(data) -> str:
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2, ensure_ascii=False)


class ExampleCache:
    """Lazily loaded mapping of "resource#method" to recorded examples."""

    def __init__(self, file_path: Path | None = None):
        self.file_path = file_path
        self._records: dict[str, list[dict]] | None = None

    def records(self) -> dict[str, list[dict]]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def formatted(self) -> dict[str, list[str]]:
        return {key: [format_example(r) for r in recs] for key, recs in self.records().items()}

    def reload(self) -> None:
        self._records = None

    def _load(self) -> dict[str, list[dict]]:
        if self.file_path is None or not self.file_path.exists():
            return {}
        data = yaml.safe_load(self.file_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.file_path}: expected a mapping of recorded examples")
        logger.info("Loaded recorded examples for %d methods from %s", len(data), self.file_path)
        return {str(key): list(value or []) for key, value in data.items()}

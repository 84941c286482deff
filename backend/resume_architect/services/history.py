from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from resume_architect.core import DATA_DIR, HISTORY_KEY, HISTORY_LIMIT, AnalysisResult, HistoryItem

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(List[HistoryItem])


def default_history_path() -> Path:
    return DATA_DIR / f"{HISTORY_KEY}.json"


class HistoryStore:
    """Capped, newest-first list of past analyses persisted as one JSON file.

    The store is the only writer of the file; every ``record`` overwrites it
    with the whole list.
    """

    def __init__(self, path: Optional[Path] = None, limit: int = HISTORY_LIMIT):
        self.path = Path(path) if path else default_history_path()
        self.limit = limit
        self._items: List[HistoryItem] = []

    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self) -> List[HistoryItem]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._items = []
            return self.items
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read history at {self.path}: {e}")
            self._items = []
            return self.items

        try:
            self._items = _items_adapter.validate_json(raw)[: self.limit]
        except ValidationError as e:
            logger.warning(f"Discarding malformed history at {self.path}: {e.error_count()} errors")
            self._items = []
        return self.items

    def record(self, item: HistoryItem) -> HistoryItem:
        self._items = [item, *self._items][: self.limit]
        self._persist()
        return item

    def get(self, item_id: str) -> HistoryItem:
        for item in self._items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    def select(self, item_id: str) -> AnalysisResult:
        return self.get(item_id).result

    def new_item(self, result: AnalysisResult, job_title: str, file_name: str) -> HistoryItem:
        ts = int(time.time() * 1000)
        item_id = str(ts)
        taken = {i.id for i in self._items}
        n = 1
        while item_id in taken:
            item_id = f"{ts}-{n}"
            n += 1
        return HistoryItem(
            id=item_id,
            timestamp=ts,
            job_title=job_title,
            score=result.overall_score,
            result=result,
            file_name=file_name,
        )

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [i.model_dump(mode="json", by_alias=True) for i in self._items]
        self.path.write_text(json.dumps(payload), encoding="utf-8")

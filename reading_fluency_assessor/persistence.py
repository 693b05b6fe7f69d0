"""
Performance record storage.

Recording is fire-and-forget: a failed write is logged through the error
handler and never reaches the session.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .config import Config
from .errors import ErrorHandler, error_handler
from .models import PerformanceRecord


logger = logging.getLogger(__name__)


class PerformanceRecorder(ABC):
    """Receives one record per completed attempt."""

    @abstractmethod
    def record(self, record: PerformanceRecord) -> None:
        """Store a record. Must not raise."""


class JsonPerformanceStore(PerformanceRecorder):
    """
    Keeps performance history in a JSON file.
    """

    def __init__(self, file_path: str = None, handler: Optional[ErrorHandler] = None):
        """
        Initialize the store.

        Args:
            file_path: History file. Defaults to Config.PERFORMANCE_FILE in the data directory
            handler: Error handler receiving persistence warnings
        """
        if file_path is None:
            file_path = Config.DATA_DIR / Config.PERFORMANCE_FILE
        self.file_path = Path(file_path)
        self.error_handler = handler or error_handler

    def record(self, record: PerformanceRecord) -> None:
        try:
            records = self._load_raw()
            records.append(record.to_dict())
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except Exception as e:
            error = self.error_handler.handle_persistence_error(
                e, {'learner_id': record.learner_id, 'path': str(self.file_path)}
            )
            self.error_handler.add_error(error)
            return
        logger.info(
            f"Saved attempt for {record.learner_id}, card {record.card_index}: "
            f"{record.average_score} ({record.average_label})"
        )

    def load_records(self, learner_id: Optional[str] = None) -> List[PerformanceRecord]:
        """
        Load stored records, oldest first.

        Args:
            learner_id: Only return this learner's records

        Returns:
            List of PerformanceRecord; empty if the history is missing or unreadable
        """
        try:
            raw = self._load_raw()
            records = [PerformanceRecord.from_dict(item) for item in raw]
        except Exception as e:
            logger.warning(f"Could not read performance history {self.file_path}: {e}")
            return []
        if learner_id is not None:
            records = [r for r in records if r.learner_id == learner_id]
        return records

    def latest_by_learner(self) -> Dict[str, PerformanceRecord]:
        """Most recent record of every learner."""
        latest: Dict[str, PerformanceRecord] = {}
        for record in self.load_records():
            current = latest.get(record.learner_id)
            if current is None or record.timestamp >= current.timestamp:
                latest[record.learner_id] = record
        return latest

    def _load_raw(self) -> List[dict]:
        if not self.file_path.exists():
            return []
        with open(self.file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Performance history must be a list, got {type(data).__name__}")
        return data

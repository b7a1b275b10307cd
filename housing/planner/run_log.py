"""
Planner Run Log - structured record of one auto-assign run.

Tracks every placement, skip and ledger rejection so a run can be audited
after the fact, and can be dumped to JSON.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class PlannerRunLog:
    """Thread-safe log of placement decisions during a planner run."""

    def __init__(self, debug_mode: bool = False) -> None:
        self.debug_mode = debug_mode
        self._lock = threading.Lock()
        self.placements: list[dict[str, Any]] = []
        self.skips: list[dict[str, str]] = []
        self.rejections: dict[str, list[dict[str, str]]] = defaultdict(list)
        self.progress: list[str] = []

    def log_placement(self, participant: str, room_label: str, beds: int) -> None:
        with self._lock:
            self.placements.append({"participant": participant, "room": room_label, "beds": beds})
        if self.debug_mode:
            logger.debug(f"[PLACED] {participant} -> {room_label} ({beds} beds)")

    def log_skip(self, participant: str, reason: str) -> None:
        """Log a participant the plan could not place at all."""
        with self._lock:
            self.skips.append({"participant": participant, "reason": reason})
        logger.info(f"[SKIPPED] {participant}: {reason}")

    def log_rejection(self, code: str, participant: str, room_label: str, message: str) -> None:
        """Log a placement the ledger refused at commit time."""
        with self._lock:
            self.rejections[code].append({"participant": participant, "room": room_label, "message": message})
        logger.warning(f"[REJECTED] {code}: {message}")

    def log_progress(self, message: str) -> None:
        with self._lock:
            self.progress.append(message)
        if self.debug_mode:
            logger.debug(f"[PLANNER] {message}")

    def get_summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                "placements": len(self.placements),
                "skips": len(self.skips),
                "rejections": {code: len(items) for code, items in self.rejections.items()},
                "progress": list(self.progress),
            }

    def save_to_file(self, run_id: str, logs_dir: str | Path = "logs/planner") -> str:
        """Save the run log as JSON and return the file path."""
        logs_dir = Path(logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = logs_dir / f"auto_assign_{timestamp}_{run_id}.json"

        with self._lock:
            log_data = {
                "timestamp": datetime.now().isoformat(),
                "run_id": run_id,
                "debug_mode": self.debug_mode,
                "detailed_logs": {
                    "placements": self.placements,
                    "skips": self.skips,
                    "rejections": dict(self.rejections),
                    "progress": self.progress,
                },
            }
        log_data["summary"] = self.get_summary()

        with open(filepath, "w") as f:
            json.dump(log_data, f, indent=2, default=str)

        logger.info(f"Planner logs saved to {filepath}")
        return str(filepath)

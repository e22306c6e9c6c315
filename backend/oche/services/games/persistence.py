"""Save-slot stores for game snapshots.

A store maps a slot name to one JSON-compatible snapshot dict. The game
machine writes after every mutating call and reads once on start-up.
"""
import json
import logging
import time
from typing import Dict, Optional

from oche import db
from oche.models import SaveSlot

logger = logging.getLogger(__name__)


class MemorySlotStore:
    """In-process slots. Payloads are kept as JSON text so reads hand back fresh copies."""

    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}

    def read(self, slot: str) -> Optional[dict]:
        raw = self._slots.get(slot)
        return json.loads(raw) if raw is not None else None

    def write(self, slot: str, data: dict) -> None:
        self._slots[slot] = json.dumps(data)

    def clear(self, slot: str) -> None:
        self._slots.pop(slot, None)


class SqlSlotStore:
    """Slots kept in the `save_slot` table. Must be used inside an app context."""

    def read(self, slot: str) -> Optional[dict]:
        row = SaveSlot.query.filter_by(slot=slot).first()
        if not row:
            return None
        try:
            return json.loads(row.payload)
        except (TypeError, ValueError) as e:
            logger.error(f"[slot-read] slot={slot} unreadable payload: {e}")
            return None

    def write(self, slot: str, data: dict) -> None:
        row = SaveSlot.query.filter_by(slot=slot).first()
        if row is None:
            row = SaveSlot(slot=slot)
        row.payload = json.dumps(data, ensure_ascii=False)
        row.updated_at = time.time()
        db.session.add(row)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.debug(f"[slot-write] slot={slot}")

    def clear(self, slot: str) -> None:
        SaveSlot.query.filter_by(slot=slot).delete()
        db.session.commit()

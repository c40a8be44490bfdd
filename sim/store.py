#!/usr/bin/env python3
"""
sim/store.py
============
JSON-file persistence for :class:`~sim.progression.MetaProgression`.

The on-disk record is::

    {"credits": 0, "upgrades": {"accel": 0, "brake": 0, "maxSpeed": 0, "lateral": 0}}

Missing or malformed data never fails a load: it yields all-zero
defaults.  Failed writes are logged as warnings and the run carries on
with its in-memory state.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field, ValidationError

from sim.progression import MetaProgression, Upgrades

log = logging.getLogger("store")


# ── Pydantic record schema ───────────────────────────────────────────────────


class UpgradesRecord(BaseModel):
    """Upgrade levels as persisted."""
    accel: int = Field(default=0, ge=0)
    brake: int = Field(default=0, ge=0)
    maxSpeed: int = Field(default=0, ge=0)
    lateral: int = Field(default=0, ge=0)


class MetaRecord(BaseModel):
    """Whole persisted record."""
    credits: int = Field(default=0, ge=0)
    upgrades: UpgradesRecord = Field(default_factory=UpgradesRecord)

    @classmethod
    def from_meta(cls, meta: MetaProgression) -> "MetaRecord":
        u = meta.upgrades
        return cls(
            credits=meta.credits,
            upgrades=UpgradesRecord(
                accel=u.accel, brake=u.brake, maxSpeed=u.max_speed, lateral=u.lateral,
            ),
        )

    def to_meta(self) -> MetaProgression:
        u = self.upgrades
        return MetaProgression(
            credits=self.credits,
            upgrades=Upgrades(
                accel=u.accel, brake=u.brake, max_speed=u.maxSpeed, lateral=u.lateral,
            ),
        )


class MetaStore:
    """Load / save the meta record at *path*.

    Parameters
    ----------
    path : str or Path
        JSON file location; parent directories are created on save.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> MetaProgression:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.info("no meta record at %s; starting fresh", self.path)
            return MetaProgression()
        except (OSError, UnicodeDecodeError) as exc:
            log.info("meta record unreadable (%s); starting fresh", exc)
            return MetaProgression()
        try:
            return MetaRecord.model_validate_json(text).to_meta()
        except ValidationError as exc:
            log.info("meta record malformed (%d errors); starting fresh", exc.error_count())
            return MetaProgression()

    def save(self, meta: MetaProgression) -> bool:
        """Persist *meta*; returns False (after a warning) on failure."""
        text = json.dumps(MetaRecord.from_meta(meta).model_dump(), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as exc:
            log.warning("unable to save meta record to %s: %s", self.path, exc)
            return False
        log.debug("meta saved credits=%d", meta.credits)
        return True


class MemoryStore:
    """In-process stand-in for :class:`MetaStore` (headless runs, tests)."""

    def __init__(self, meta: Union[MetaProgression, None] = None) -> None:
        self._record = MetaRecord.from_meta(meta or MetaProgression())
        self.saves = 0

    def load(self) -> MetaProgression:
        return self._record.to_meta()

    def save(self, meta: MetaProgression) -> bool:
        self._record = MetaRecord.from_meta(meta)
        self.saves += 1
        return True

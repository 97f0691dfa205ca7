"""Durable record of an outstanding resource set.

A record exists on disk while resources created by a run have not yet been
torn down. The next run reads it to clean up after a crash.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mayfly.constants import STATE_FILE_NAME
from mayfly.core.models import ResourceSet
from mayfly.errors import StateError
from mayfly.utils import atomic_file_write, get_mayfly_dir

logger = logging.getLogger(__name__)

STATE_DIR_MODE = 0o700
STATE_FILE_MODE = 0o600


@dataclass(frozen=True)
class PersistedRecord:
    """On-disk mirror of a resource set.

    Attributes
    ----------
    region : str
        Region the resources live in
    instance_id : str
        Instance ID, empty if the launch never happened
    security_group_id : str
        Security group ID, empty if it was never created
    """

    region: str
    instance_id: str = ""
    security_group_id: str = ""

    @classmethod
    def from_resources(cls, region: str, resources: ResourceSet) -> PersistedRecord:
        return cls(
            region=region,
            instance_id=resources.instance_id,
            security_group_id=resources.security_group_id,
        )

    def to_resources(self) -> ResourceSet:
        return ResourceSet(
            instance_id=self.instance_id,
            security_group_id=self.security_group_id,
        )

    def to_dict(self) -> dict[str, str]:
        data = {"region": self.region}
        if self.instance_id:
            data["instance_id"] = self.instance_id
        if self.security_group_id:
            data["security_group_id"] = self.security_group_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersistedRecord:
        if not isinstance(data, dict):
            raise ValueError("state must be a JSON object")

        region = data.get("region")
        if not isinstance(region, str) or not region:
            raise ValueError("state is missing 'region'")

        instance_id = data.get("instance_id") or ""
        security_group_id = data.get("security_group_id") or ""

        if not isinstance(instance_id, str) or not isinstance(security_group_id, str):
            raise ValueError("state identifiers must be strings")

        return cls(
            region=region,
            instance_id=instance_id,
            security_group_id=security_group_id,
        )


class StateStore:
    """Single-record state file.

    Parameters
    ----------
    path : Path | None
        Location of the state file. Defaults to ``~/.mayfly/state.json``
        (or ``$MAYFLY_DIR/state.json``).
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_mayfly_dir() / STATE_FILE_NAME

    def save(self, record: PersistedRecord) -> None:
        """Overwrite the record.

        Parameters
        ----------
        record : PersistedRecord
            Record to persist

        Raises
        ------
        StateError
            If the directory or file cannot be written
        """
        try:
            self.path.parent.mkdir(mode=STATE_DIR_MODE, parents=True, exist_ok=True)
            atomic_file_write(
                self.path,
                json.dumps(record.to_dict(), indent=2),
                mode=STATE_FILE_MODE,
            )
        except OSError as e:
            raise StateError(f"Failed to write state file {self.path}: {e}") from e

        logger.debug("Saved state to %s: %s", self.path, record.to_dict())

    def load(self) -> PersistedRecord | None:
        """Read the record.

        Returns
        -------
        PersistedRecord | None
            The record, or None when no state file exists

        Raises
        ------
        StateError
            If the file exists but cannot be read or decoded
        """
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateError(f"Failed to read state file {self.path}: {e}") from e

        try:
            return PersistedRecord.from_dict(json.loads(raw))
        except ValueError as e:
            raise StateError(f"Invalid state file {self.path}: {e}") from e

    def clear(self) -> None:
        """Remove the record. Missing files are ignored.

        Raises
        ------
        StateError
            If the file exists but cannot be removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StateError(f"Failed to remove state file {self.path}: {e}") from e

        logger.debug("Cleared state file %s", self.path)

"""
Migration state container and state-file persistence.

``MigrationState`` maps each step key to the output the step recorded
(an address, a transaction hash or a small JSON record). Steps only ever see
a read-only view; the engine is the single writer and merges each step's
delta before the state is persisted.

The state file is the whole mapping serialised as a JSON object. It is
rewritten in full after every step (write to a temporary file, then rename).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator

from deploy_v3.exceptions import StateFileError
from deploy_v3.utils.logging import log_with_context


class MigrationState(Mapping):
    """Append-only-by-key mapping from step key to recorded step output."""

    def __init__(self, entries: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(entries or {})

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MigrationState({self._entries!r})"

    def view(self) -> Mapping[str, Any]:
        """Return a read-only live view for steps to compute arguments from."""
        return MappingProxyType(self._entries)

    def snapshot(self) -> dict[str, Any]:
        """Return an independent copy of the complete state."""
        return dict(self._entries)

    def merge(self, delta: Mapping[str, Any]) -> None:
        """Merge a step's delta into the state (last write wins)."""
        self._entries.update(delta)


def load_state(path: Path) -> MigrationState:
    """Load migration state from disk.

    A missing file is a fresh deployment and yields an empty state. A file
    that exists but cannot be parsed is fatal: silently starting over would
    redeploy contracts that are already live.

    Raises:
        StateFileError: If the file is unreadable or not a JSON object.
    """
    if not path.exists():
        log_with_context(
            logging.INFO, f"No state file at {path}, starting a fresh deployment"
        )
        return MigrationState()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        raise StateFileError(
            f"Failed to load and parse migration state file {path}: {e}"
        ) from e
    if not isinstance(raw, dict):
        raise StateFileError(
            f"Migration state file {path} has invalid format, expected a JSON object"
        )
    log_with_context(
        logging.INFO, f"Loaded migration state with {len(raw)} entries from {path}"
    )
    return MigrationState(raw)


def save_state(path: Path, state: Mapping[str, Any]) -> None:
    """Atomically overwrite the state file with the complete state.

    Missing parent directories are created.

    Raises:
        StateFileError: If the file cannot be written.
    """
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(dict(state), indent=2) + "\n", encoding="utf-8")
        tmp.replace(path)
    except (OSError, TypeError) as e:
        raise StateFileError(f"Failed to write migration state {path}: {e}") from e
    log_with_context(logging.DEBUG, f"Persisted {len(state)} state entries to {path}")


class StateFileWriter:
    """State-change callback that persists every snapshot to a JSON file.

    Also remembers the last snapshot it was given so callers can report the
    final state even when a run fails.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.last_state: dict[str, Any] | None = None

    def __call__(self, state: Mapping[str, Any]) -> None:
        save_state(self.path, state)
        self.last_state = dict(state)

"""Durable storage for the in-progress feeding timer."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerStateStore(Protocol):
    """Single-key storage for the serialized timer session."""

    def load(self) -> str | None:
        """Return the stored session, if any."""

    def save(self, payload: str) -> None:
        """Replace the stored session."""

    def clear(self) -> None:
        """Remove the stored session."""


@dataclass
class JsonFileTimerStateStore(TimerStateStore):
    """Timer state stored as a JSON file on local disk."""

    path: Path

    def load(self) -> str | None:
        """Read the state file if it exists."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            logger.warning(
                "Discarding unreadable timer state", extra={"path": str(self.path)}
            )
            self.clear()
            return None
        except OSError:
            logger.warning("Could not read timer state", extra={"path": str(self.path)})
            return None

    def save(self, payload: str) -> None:
        """Write the state file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(self.path)

    def clear(self) -> None:
        """Delete the state file."""
        self.path.unlink(missing_ok=True)

"""Session manager tracking the engine's record/replay mode."""

import logging
from typing import Literal, Optional

logger = logging.getLogger(__name__)


ModeState = Literal["idle", "recording", "replaying"]


class SessionManager:
    """Holds the process-wide mode of the engine.

    Tracks:
    - Whether live responses are being recorded
    - Whether responses are being replayed
    - The target recordset of the last start() or replay()

    Recording and replaying are mutually exclusive. Transitions only happen
    through start(), replay() and stop().
    """

    def __init__(self) -> None:
        """Initialize the session manager in idle state."""
        self._recording = False
        self._replaying = False
        self._current_recordset: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        """Check if currently recording.

        Returns:
            True if in recording state
        """
        return self._recording

    @property
    def is_replaying(self) -> bool:
        """Check if currently replaying.

        Returns:
            True if in replaying state
        """
        return self._replaying

    @property
    def current_state(self) -> ModeState:
        """Get the current mode (idle, recording, or replaying)."""
        if self._replaying:
            return "replaying"
        if self._recording:
            return "recording"
        return "idle"

    @property
    def current_recordset(self) -> Optional[str]:
        """Target recordset of the last start() or replay() call."""
        return self._current_recordset

    def start(self, recordset: str) -> None:
        """Enter recording mode targeting ``recordset``."""
        self._recording = True
        self._replaying = False
        self._current_recordset = recordset
        logger.info("Record Mode ON")

    def replay(self, recordset: str) -> None:
        """Enter replaying mode targeting ``recordset``."""
        self._replaying = True
        self._recording = False
        self._current_recordset = recordset
        logger.info("Replay Mode ON")

    def stop(self) -> None:
        """Clear both recording and replaying flags."""
        self._recording = False
        self._replaying = False
        logger.info("Record/Replay Mode OFF")

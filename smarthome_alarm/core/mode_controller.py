from __future__ import annotations

import logging
from typing import Callable, Optional

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.outputs import OutputDriver
from smarthome_alarm.domain.events import EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode

logger = logging.getLogger(__name__)


class ModeController:
    """
    Single source of truth for the control mode.

    Every mode change goes through :meth:`commit`, which publishes the mode
    and makes the output driver recompute. Committing the current mode again
    only re-applies the outputs.

    Parameters
    ----------
    core
        Shared core state.
    outputs
        Output driver recomputed on every commit.
    on_disarm
        Full disarm handler used by :meth:`set_mode_command` for
        ``"disarmed"`` (wired to the arming sequencer).
    """

    def __init__(
        self,
        core: CoreState,
        outputs: OutputDriver,
        on_disarm: Optional[Callable[[], None]] = None,
    ) -> None:
        self._core = core
        self._outputs = outputs
        self.on_disarm = on_disarm

    @property
    def mode(self) -> ControlMode:
        return self._core.store.mode

    def commit(self, mode: ControlMode) -> None:
        previous = self._core.store.mode
        self._core.store.update(mode=mode)
        if previous != mode:
            logger.info("Mode %s -> %s", previous.value, mode.value)
        self._outputs.on_mode_committed(mode)

    def set_mode_command(self, value: object) -> bool:
        """
        Handle a direct mode-set request.

        ``"disarmed"`` performs a full disarm; any other known mode is
        committed as-is and reported with a ``mode_set`` event. Unknown values
        are logged and ignored.

        Returns
        -------
        bool
            True if the request was applied.
        """
        mode = ControlMode.parse(value)
        if mode is None:
            logger.warning("Unsupported mode value: %r", value)
            return False

        if mode == ControlMode.DISARMED:
            if self.on_disarm is None:
                logger.warning("No disarm handler wired, committing disarmed directly")
                self.commit(mode)
            else:
                self.on_disarm()
            return True

        self.commit(mode)
        self._core.events.emit(
            EventType.MODE_SET,
            EventSeverity.INFO,
            f"Mode set ({mode.value})",
            mode=mode,
        )
        return True

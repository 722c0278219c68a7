"""Once-per-day debouncing of limit alerts"""

from enum import Enum


class NotificationState(str, Enum):
    QUIET = "quiet"
    NOTIFIED = "notified"


class NotificationDebouncer:
    """
    Two-state machine deciding when a limit alert may go out.

    QUIET --breach_detected()--> NOTIFIED   (returns True: send the alert)
    NOTIFIED --breach_detected()--> NOTIFIED (returns False: already alerted)
    any --reset()--> QUIET                   (daily, independent of breaches)
    """

    def __init__(self) -> None:
        self._state = NotificationState.QUIET

    @property
    def state(self) -> NotificationState:
        return self._state

    @property
    def notified(self) -> bool:
        return self._state is NotificationState.NOTIFIED

    def breach_detected(self) -> bool:
        if self._state is NotificationState.NOTIFIED:
            return False
        self._state = NotificationState.NOTIFIED
        return True

    def reset(self) -> None:
        self._state = NotificationState.QUIET

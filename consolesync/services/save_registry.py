"""
Save coordination between form screens and the page footer.

The footer is rendered once, above every form, and exposes the only "save"
button. Exactly one form is mounted at a time, so a single registration slot
is enough: the mounted form registers its submit handler, the footer reads
the form's validity and triggers the handler.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import structlog

from consolesync.core.models import SaveState

logger = structlog.get_logger(__name__)

Getter = Callable[[], bool]
Listener = Callable[[int], None]


@dataclass(frozen=True)
class SaveRegistration:
    handler: Callable[[], Any]
    is_valid: Optional[Getter] = None
    is_submitting: Optional[Getter] = None

    def same_as(self, other: Optional["SaveRegistration"]) -> bool:
        # == rather than `is`: two lookups of one bound method are equal, not identical
        return (
            other is not None
            and self.handler == other.handler
            and self.is_valid == other.is_valid
            and self.is_submitting == other.is_submitting
        )


class SaveRegistry:
    """Single-slot holder of the active form's save handler."""

    def __init__(self):
        self._registration: Optional[SaveRegistration] = None
        self._listeners: List[Listener] = []
        self.version = 0

    @property
    def is_registered(self) -> bool:
        return self._registration is not None

    def register(
        self,
        handler: Callable[[], Any],
        is_valid: Optional[Getter] = None,
        is_submitting: Optional[Getter] = None,
    ) -> None:
        """Install ``handler``, replacing any previous registration."""
        registration = SaveRegistration(handler, is_valid, is_submitting)
        changed = not registration.same_as(self._registration)
        self._registration = registration
        if changed:
            self._bump()

    def unregister(self) -> None:
        if self._registration is None:
            return
        self._registration = None
        self._bump()

    def trigger(self) -> Any:
        """Run the registered handler; does nothing when no form is registered."""
        if self._registration is None:
            logger.debug("Save triggered with no registered form")
            return None
        return self._registration.handler()

    def read_state(self) -> SaveState:
        """Validity and submitting flags of the registered form. Never raises."""
        registration = self._registration
        if registration is None:
            return SaveState()
        return SaveState(
            is_valid=self._read(registration.is_valid, True),
            is_submitting=self._read(registration.is_submitting, False),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new version on every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def _read(getter: Optional[Getter], default: bool) -> bool:
        if getter is None:
            return default
        try:
            return bool(getter())
        except Exception as e:
            logger.debug("Save state getter failed", error=str(e))
            return default

    def _bump(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self.version)

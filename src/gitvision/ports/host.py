# Licensed under the Apache License, Version 2.0
from __future__ import annotations

from typing import Callable, Protocol

# Receives a fraction of the pass (1/len(files)) per completed file.
ProgressSink = Callable[[float], None]


class HostPort(Protocol):
    """
    The environment the engine is embedded in (editor, CLI, tests).
    Implementers may leave any method as the default no-op.
    """

    def confirm(self, message: str) -> bool:
        """Blocking yes/no question. Declining a large batch clears all state."""
        return True

    def warn(self, message: str) -> None:
        """Show a user-visible warning."""
        return None

    def info(self, message: str) -> None:
        """Show a user-visible informational message."""
        return None

    def highlights_changed(self) -> None:
        """Highlight data changed; the renderer should refresh."""
        return None


class NullHost(HostPort):
    """Accepts every confirmation and drops every message."""

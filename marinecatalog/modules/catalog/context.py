from __future__ import annotations

from dataclasses import dataclass
from typing import List

from marinecatalog.modules.commerce.types import DISCONNECTED, ConnectionStatus


@dataclass(frozen=True)
class Toast:
    level: str  # info | success | error
    message: str


class CatalogContext:
    """Connection status and pending toasts shared by one catalog view.

    Passed to the view model explicitly; the web layer reads the status for the
    header badge and drains toasts into flash messages.
    """

    def __init__(self, connection: ConnectionStatus = DISCONNECTED):
        self.connection = connection
        self._toasts: List[Toast] = []

    def record_success(self, reported: ConnectionStatus) -> None:
        # A fetch just succeeded, so we are connected whatever the client last said.
        self.connection = ConnectionStatus(is_connected=True, using_live_data=reported.using_live_data)

    def record_failure(self) -> None:
        self.connection = DISCONNECTED

    def notify(self, message: str, level: str = "info") -> None:
        self._toasts.append(Toast(level=level, message=message))

    def drain_toasts(self) -> List[Toast]:
        toasts, self._toasts = self._toasts, []
        return toasts

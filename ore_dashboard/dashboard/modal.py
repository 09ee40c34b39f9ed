"""
Single-slot modal navigation state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ore_dashboard.dashboard.types import Dialog, ViewKind


class ModalLevel(Enum):
    CLOSED = "closed"
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class ModalEntry:
    """The view in the secondary slot and the account it was opened for."""
    view: ViewKind
    target: Optional[str] = None
    dialog: Optional[Dialog] = None


class ModalStack:
    """At most one secondary view on top of the primary dashboard view."""

    def __init__(self):
        self.level = ModalLevel.PRIMARY
        self.entry: Optional[ModalEntry] = None

    @property
    def depth(self) -> int:
        return 0 if self.entry is None else 1

    @property
    def view(self) -> Optional[ViewKind]:
        return None if self.entry is None else self.entry.view

    @property
    def target(self) -> Optional[str]:
        return None if self.entry is None else self.entry.target

    def open_secondary(self, view: ViewKind, target: Optional[str] = None, dialog: Optional[Dialog] = None) -> ModalEntry:
        """
        Show `view`, replacing whatever secondary view is open.

        A missing target keeps the target of the replaced entry so a
        claim view can move to its confirmation without losing the account.
        Dialogs never carry a target.
        """
        if target is None and view is not ViewKind.DIALOG and self.entry is not None:
            target = self.entry.target
        self.entry = ModalEntry(view=view, target=target, dialog=dialog)
        self.level = ModalLevel.SECONDARY
        return self.entry

    def hide(self) -> None:
        self.entry = None
        self.level = ModalLevel.PRIMARY

    def close(self) -> None:
        self.entry = None
        self.level = ModalLevel.CLOSED

"""
Test modal navigation.
"""

from ore_dashboard.dashboard.modal import ModalLevel, ModalStack
from ore_dashboard.dashboard.types import Dialog, DialogKind, ViewKind


def test_confirm_view_inherits_target():
    modal = ModalStack()
    modal.open_secondary(ViewKind.CLAIM, "acct-1")

    modal.open_secondary(ViewKind.CLAIM_CONFIRM)

    assert modal.view is ViewKind.CLAIM_CONFIRM
    assert modal.target == "acct-1"
    assert modal.depth == 1


def test_dialog_drops_target():
    modal = ModalStack()
    modal.open_secondary(ViewKind.STAKE, "acct-1")

    modal.open_secondary(ViewKind.DIALOG, dialog=Dialog("done", DialogKind.GOOD))

    assert modal.target is None
    assert modal.entry.dialog.content == "done"


def test_hide_and_close():
    modal = ModalStack()
    modal.open_secondary(ViewKind.ADD_ACCOUNT)

    modal.hide()
    assert modal.level is ModalLevel.PRIMARY
    assert modal.view is None

    modal.close()
    assert modal.level is ModalLevel.CLOSED

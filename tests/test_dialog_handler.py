"""Rebuild loop of the dialog handler, with the dialog replaced by a script."""

from __future__ import annotations

import random

import pytest

pytest.importorskip(
    "PySide6.QtWidgets",
    reason="Qt widgets are required for dialog handler tests",
    exc_type=ImportError,
)

from PySide6.QtWidgets import QDialog  # noqa: E402
from conftest import FAMILY, local  # noqa: E402

from app.viewmodels.creator_vm import CreatorVM, EditState, Transition  # noqa: E402
from app.views.constants import REFRESH_RESULT  # noqa: E402
from app.views.handlers import dialog_handler  # noqa: E402
from app.views.handlers.dialog_handler import CreatorDialogHandler  # noqa: E402


class FakePrompter:
    def __init__(self) -> None:
        self.errors: list[tuple[str, str]] = []

    def confirm_replace(self, name: str) -> bool:
        return False

    def show_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))


def _script(monkeypatch, *steps):
    """Replace the dialog with one that runs `steps` (callables) in turn."""
    pending = list(steps)
    built: list[int] = []

    class ScriptedDialog:
        def __init__(self, vm, runner, parent) -> None:
            vm.prepare_view()
            self.vm = vm
            built.append(vm.view_generation)

        def exec(self):
            return pending.pop(0)(self.vm)

    monkeypatch.setattr(dialog_handler, "CreatorDialog", ScriptedDialog)
    return built


@pytest.fixture()
def vm(catalog, prefs) -> CreatorVM:
    return CreatorVM.start(catalog, prefs, "October 19, 2026", rng=random.Random(3))


def test_add_row_rebuilds_then_confirms(monkeypatch, vm, catalog) -> None:
    def add(vm):
        vm.add_row()
        return REFRESH_RESULT

    built = _script(monkeypatch, add, lambda vm: QDialog.Accepted)

    result = CreatorDialogHandler(vm, runner=None, prompter=FakePrompter()).run()

    assert result is Transition.CONFIRMED
    assert built == [1, 2]
    assert len(vm.rows) == 2
    assert catalog.active_collection is not None


def test_reject_cancels(monkeypatch, vm) -> None:
    _script(monkeypatch, lambda vm: QDialog.Rejected)

    result = CreatorDialogHandler(vm, runner=None, prompter=FakePrompter()).run()

    assert result is Transition.CANCELLED
    assert vm.state is EditState.CANCELLED


def test_declined_overwrite_returns_to_editing(monkeypatch, vm, catalog) -> None:
    def overwrite(vm):
        vm.set_destination_name("Family")
        return QDialog.Accepted

    before = catalog.get_photos(local(FAMILY))
    built = _script(monkeypatch, overwrite, lambda vm: QDialog.Rejected)

    result = CreatorDialogHandler(vm, runner=None, prompter=FakePrompter()).run()

    assert result is Transition.CANCELLED
    assert built == [1, 2]
    assert catalog.get_photos(local(FAMILY)) == before

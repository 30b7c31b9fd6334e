"""Creator dialog construction and teardown on an offscreen platform."""

from __future__ import annotations

import os
import random

import pytest

pytest.importorskip(
    "PySide6.QtWidgets",
    reason="Qt widgets are required for creator dialog tests",
    exc_type=ImportError,
)

from PySide6.QtCore import QThreadPool  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from app.viewmodels.creator_vm import CreatorVM  # noqa: E402
from app.views.constants import REFRESH_RESULT  # noqa: E402
from app.views.count_tasks import CountTaskRunner  # noqa: E402
from app.views.dialogs.creator_dialog import CreatorDialog  # noqa: E402


@pytest.fixture()
def qapp() -> QApplication:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture()
def dialog(qapp, catalog, prefs):
    vm = CreatorVM.start(catalog, prefs, "October 19, 2026", rng=random.Random(5))
    runner = CountTaskRunner(catalog, pool=QThreadPool())
    return CreatorDialog(vm, runner), vm


def test_dialog_shows_prepared_rows(dialog) -> None:
    dlg, vm = dialog
    assert vm.view_generation == 1
    assert not vm.needs_rebuild
    assert dlg.edit_name.text() == "October 19, 2026"


def test_add_row_finishes_with_refresh(dialog) -> None:
    dlg, vm = dialog
    dlg._on_add()

    assert dlg.result() == REFRESH_RESULT
    assert len(vm.rows) == 2
    assert vm.needs_rebuild


def test_closing_twice_is_harmless(dialog) -> None:
    dlg, _ = dialog
    dlg.done(0)
    dlg.done(0)
    assert dlg.result() == 0

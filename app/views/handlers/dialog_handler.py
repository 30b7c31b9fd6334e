"""DialogHandler: Runs the creator dialog loop and answers prompts."""

from __future__ import annotations

from PySide6.QtWidgets import QDialog, QMessageBox, QWidget
from loguru import logger

from app.viewmodels.creator_vm import CreatorVM, Transition
from app.views.constants import REFRESH_RESULT
from app.views.count_tasks import CountTaskRunner
from app.views.dialogs.creator_dialog import CreatorDialog
from core.errors import ValidationError
from core.services.interfaces import Prompter


class QtPrompter:
    """Implementation of the Prompter protocol using message boxes."""

    def __init__(self, parent: QWidget | None = None) -> None:
        self.parent = parent

    def confirm_replace(self, name: str) -> bool:
        """Ask before replacing the contents of an existing collection."""
        box = QMessageBox(self.parent)
        box.setIcon(QMessageBox.Question)
        box.setWindowTitle("Collection Exists")
        box.setText(
            f"A collection named '{name}' already exists. Do you want to replace its contents?"
        )
        replace = box.addButton("Replace", QMessageBox.AcceptRole)
        box.addButton("Cancel", QMessageBox.RejectRole)
        box.exec()
        return box.clickedButton() is replace

    def show_error(self, title: str, message: str) -> None:
        QMessageBox.warning(self.parent, title, message)


class CreatorDialogHandler:
    """Presents the creator dialog until the session ends.

    The dialog cannot grow or shrink in place, so every structural edit and
    every rejected confirmation closes it and a new one is built from the
    view-model.
    """

    def __init__(
        self,
        vm: CreatorVM,
        runner: CountTaskRunner,
        prompter: Prompter,
        parent: QWidget | None = None,
    ) -> None:
        """Initialize with the session view-model and host services.

        Args:
            vm: Session view-model.
            runner: Background recount dispatcher shared by every dialog.
            prompter: Confirmation and error callbacks.
            parent: Parent widget for dialogs
        """
        self.vm = vm
        self.runner = runner
        self.prompter = prompter
        self.parent = parent

    def run(self) -> Transition:
        """Show dialogs until the user confirms or cancels."""
        while True:
            dlg = CreatorDialog(self.vm, self.runner, self.parent)
            result = dlg.exec()

            if result == REFRESH_RESULT:
                continue
            if result != QDialog.Accepted:
                return self.vm.cancel()

            try:
                transition = self.vm.confirm(self.prompter)
            except ValidationError as ex:
                logger.warning("Confirm blocked by validation: {}", ex)
                self.prompter.show_error("Error", str(ex))
                continue
            if transition is not Transition.REFRESH:
                return transition

from __future__ import annotations

from functools import partial

from PySide6.QtGui import QDoubleValidator
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.creator_vm import CreatorVM
from app.viewmodels.source_row_vm import RowView, SourceRowVM
from app.views.constants import (
    ACTION_VERB,
    CANCEL_VERB,
    DESTINATION_NAME_WIDTH,
    DIALOG_TITLE,
    DIALOG_WIDTH,
    GROUP_BOX_MARGIN,
    MAX_REQUESTED_COUNT,
    REFRESH_RESULT,
    ROW_MARGIN_BOTTOM,
    SOURCE_ADD_TITLE,
    SOURCE_BUTTON_WIDTH,
    SOURCE_NUM_PHOTOS_WIDTH,
    SOURCE_REMOVE_TITLE,
    SOURCE_TOTAL_PHOTOS_WIDTH,
)
from app.views.count_tasks import CountTaskRunner
from core.errors import ValidationError
from core.models import PopupItem


def _format_count(value: float) -> str:
    return f"{value:g}"


def _fill_combo(combo: QComboBox, items: list[PopupItem], current: object) -> None:
    for idx, item in enumerate(items):
        combo.addItem(item.title, idx)
        if item.value == current:
            combo.setCurrentIndex(idx)


class CreatorDialog(QDialog):
    """Modal view of one `CreatorVM` snapshot.

    The layout is fixed at construction. Adding or removing a row finishes the
    dialog with `REFRESH_RESULT` so the caller can build a fresh one.
    """

    def __init__(self, vm: CreatorVM, runner: CountTaskRunner, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle(DIALOG_TITLE)
        self.setFixedWidth(DIALOG_WIDTH)
        self._vm = vm
        self._runner = runner
        self._count_edits: list[QLineEdit] = []
        self._total_labels: dict[int, QLabel] = {}

        views = vm.prepare_view()

        root = QVBoxLayout(self)
        root.addWidget(self._build_sources(views))
        root.addWidget(self._build_destination())

        btns = QHBoxLayout()
        self.btn_create = QPushButton(ACTION_VERB)
        self.btn_cancel = QPushButton(CANCEL_VERB)
        self.btn_create.setDefault(True)
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        btns.addWidget(self.btn_create)
        root.addLayout(btns)

        self.btn_create.clicked.connect(self._on_accept)
        self.btn_cancel.clicked.connect(self.reject)
        self._runner.totalApplied.connect(self._on_total_applied)

    def done(self, result: int) -> None:  # type: ignore[override]
        try:
            self._runner.totalApplied.disconnect(self._on_total_applied)
        except (RuntimeError, TypeError) as ex:
            logger.debug("totalApplied already disconnected: {}", ex)
        super().done(result)

    # UI construction
    def _build_sources(self, views: list[RowView]) -> QWidget:
        box = QGroupBox("Sources")
        grid = QGridLayout(box)
        grid.setContentsMargins(*(GROUP_BOX_MARGIN,) * 4)
        grid.setVerticalSpacing(ROW_MARGIN_BOTTOM)
        grid.setColumnStretch(0, 1)

        bold = "font-weight: bold; font-size: small;"
        for col, title in enumerate(("Collection", "Photos")):
            header = QLabel(title)
            header.setStyleSheet(bold)
            grid.addWidget(header, 0, col)

        validator = QDoubleValidator(0.0, MAX_REQUESTED_COUNT, 6, box)
        for i, (row, view) in enumerate(zip(self._vm.rows, views)):
            line = i + 1
            combo = QComboBox()
            _fill_combo(combo, self._vm.source_items, view.location)
            combo.currentIndexChanged.connect(partial(self._on_source_changed, i))
            grid.addWidget(combo, line, 0)

            edit = QLineEdit(_format_count(view.requested_count))
            edit.setValidator(validator)
            edit.setFixedWidth(SOURCE_NUM_PHOTOS_WIDTH)
            self._count_edits.append(edit)
            grid.addWidget(edit, line, 1)

            total = QLabel(view.total_text)
            total.setFixedWidth(SOURCE_TOTAL_PHOTOS_WIDTH)
            self._total_labels[id(row)] = total
            grid.addWidget(total, line, 2)

            remove = QPushButton(SOURCE_REMOVE_TITLE)
            remove.setFixedWidth(SOURCE_BUTTON_WIDTH)
            remove.clicked.connect(partial(self._on_remove, i))
            grid.addWidget(remove, line, 3)

        add = QPushButton(SOURCE_ADD_TITLE)
        add.setFixedWidth(SOURCE_BUTTON_WIDTH)
        add.clicked.connect(self._on_add)
        grid.addWidget(add, len(views) + 1, 3)
        return box

    def _build_destination(self) -> QWidget:
        box = QGroupBox("Destination")
        grid = QGridLayout(box)
        grid.setContentsMargins(*(GROUP_BOX_MARGIN,) * 4)
        grid.setColumnStretch(0, 1)

        bold = "font-weight: bold; font-size: small;"
        for col, title in enumerate(("Collection Set", "Collection Name")):
            header = QLabel(title)
            header.setStyleSheet(bold)
            grid.addWidget(header, 0, col)

        self.combo_destination = QComboBox()
        _fill_combo(
            self.combo_destination, self._vm.destination_items, self._vm.destination.location
        )
        self.combo_destination.currentIndexChanged.connect(self._on_destination_changed)
        grid.addWidget(self.combo_destination, 1, 0)

        self.edit_name = QLineEdit(self._vm.destination.name)
        self.edit_name.setFixedWidth(DESTINATION_NAME_WIDTH)
        grid.addWidget(self.edit_name, 1, 1)
        return box

    # Handlers
    def _on_source_changed(self, row_index: int, combo_index: int) -> None:
        if combo_index < 0:
            return
        location = self._vm.source_items[combo_index].value
        refresh = self._vm.set_row_location(row_index, location)
        if refresh is not None:
            self._set_total_text(refresh.row)
            self._runner.request(refresh)

    def _on_destination_changed(self, combo_index: int) -> None:
        if combo_index >= 0:
            self._vm.set_destination_location(self._vm.destination_items[combo_index].value)

    def _on_total_applied(self, row: SourceRowVM) -> None:
        self._set_total_text(row)

    def _set_total_text(self, row: SourceRowVM) -> None:
        label = self._total_labels.get(id(row))
        if label is not None:
            label.setText(row.total_text)

    def _on_add(self) -> None:
        self._commit_fields(strict=False)
        self._vm.add_row()
        self.done(REFRESH_RESULT)

    def _on_remove(self, row_index: int) -> None:
        self._commit_fields(strict=False)
        self._vm.remove_row(row_index)
        self.done(REFRESH_RESULT)

    def _on_accept(self) -> None:
        errors = self._commit_fields(strict=True)
        if errors:
            QMessageBox.warning(self, DIALOG_TITLE, "\n".join(errors))
            return
        self.accept()

    def _commit_fields(self, *, strict: bool) -> list[str]:
        """Push edited text into the view-model; return validation messages."""
        errors: list[str] = []
        for i, edit in enumerate(self._count_edits):
            try:
                self._vm.set_row_count(i, edit.text())
            except ValidationError as ex:
                errors.append(f"Row {i + 1}: {ex}")
        try:
            self._vm.set_destination_name(self.edit_name.text())
        except ValidationError as ex:
            errors.append(str(ex))
        return errors if strict else []

from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox
from loguru import logger

from app.viewmodels.creator_vm import CreatorVM, Transition
from app.views.count_tasks import CountTaskRunner
from app.views.handlers.dialog_handler import CreatorDialogHandler, QtPrompter
from core.errors import ConfigurationError
from core.services.preference_codec import DEFAULT_COUNT
from infrastructure.json_catalog import JsonCatalog
from infrastructure.logging import init_logging
from infrastructure.preference_store import JsonPreferenceStore
from infrastructure.settings import JsonSettings


BASE_DIR = Path(__file__).parent
DEFAULT_NAMESPACE = "collection_creator"


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    log_dir = init_logging(
        settings.get("logging.dir"), level=str(settings.get("logging.level", "INFO"))
    )
    logger.info("Logging to {}", log_dir)

    app = QApplication(sys.argv)

    catalog = JsonCatalog.open(settings.get_path("catalog.path", "samples/catalog.json"))
    prefs = JsonPreferenceStore(
        settings.get_path("preferences.path", "preferences.json"),
        namespace=str(settings.get("preferences.namespace", DEFAULT_NAMESPACE)),
    )

    try:
        vm = CreatorVM.start(
            catalog,
            prefs,
            default_name=settings.default_destination_name(),
            default_count=settings.get_float("sampling.default_count", DEFAULT_COUNT),
        )
    except ConfigurationError as ex:
        logger.error("Cannot start session: {}", ex)
        QMessageBox.critical(None, "Error", str(ex))
        return 1

    runner = CountTaskRunner(catalog, parent=app)
    handler = CreatorDialogHandler(vm, runner, QtPrompter())
    transition = handler.run()
    runner.wait()

    if transition is Transition.CONFIRMED and vm.last_result is not None:
        result = vm.last_result
        logger.info(
            "Created '{}' with {} photos (active: {})",
            result.collection.name,
            result.photo_count,
            catalog.active_collection,
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from src.core.app_logging import configure_logging
from src.ui.main_window import MainWindow


def main() -> int:
    log_file = configure_logging()
    logger = logging.getLogger("shorthand.app")
    logger.info("Application startup initiated. Log file: %s", log_file)
    app = QApplication(sys.argv)
    window = MainWindow()
    for arg in app.arguments()[1:]:
        candidate = Path(arg)
        if candidate.is_file():
            window.open_file(candidate)
            break
    window.show()
    exit_code = app.exec()
    logger.info("Application exiting with code %s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())

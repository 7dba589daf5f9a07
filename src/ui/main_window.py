from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from src.core.engine import ExpansionEngine
from src.core.rules import ExpansionRule, matches_search
from src.core.settings_store import ExpansionSettings, SettingsStore
from src.ui.qt_editor import QtEditorBuffer

THEME = {
    "bg": "#1B1F27",
    "panel": "#232935",
    "text": "#E6EAF2",
    "muted": "#9AA5B8",
    "accent": "#5B9BF0",
    "accent_hover": "#4785DA",
    "warning": "#D9645B",
    "border": "#343C4C",
}
NOTICE_TIMEOUT_MS = 4000
COL_ABBREVIATION, COL_EXPANSION, COL_FOLDER, COL_MANUAL = range(4)


def document_path_for(file_path: Path | None, root: Path) -> str:
    if file_path is None:
        return ""
    resolved = file_path.resolve()
    try:
        return resolved.relative_to(root.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()


class RulesEditorDialog(QDialog):
    def __init__(self, initial: ExpansionSettings, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Abbreviation Rules")
        self.resize(860, 560)
        layout = QVBoxLayout(self)

        self.auto_replace = QCheckBox("Expand automatically after a space or punctuation mark")
        self.auto_replace.setChecked(initial.auto_replace_enabled)
        layout.addWidget(self.auto_replace)

        layout.addWidget(QLabel("Add a new rule"))
        add_row = QHBoxLayout()
        self.new_abbreviation = QLineEdit()
        self.new_abbreviation.setPlaceholderText("Abbreviation, e.g. HTN")
        self.new_expansion = QLineEdit()
        self.new_expansion.setPlaceholderText("Expansion, e.g. hypertension")
        self.new_folder = QLineEdit()
        self.new_folder.setPlaceholderText("Folder (optional)")
        self.new_manual = QCheckBox("Manual")
        add = QPushButton("Add")
        add.clicked.connect(self._add_from_inputs)
        add_row.addWidget(self.new_abbreviation, 3)
        add_row.addWidget(self.new_expansion, 5)
        add_row.addWidget(self.new_folder, 3)
        add_row.addWidget(self.new_manual)
        add_row.addWidget(add)
        layout.addLayout(add_row)
        self.add_hint = QLabel("")
        self.add_hint.setObjectName("hintLabel")
        layout.addWidget(self.add_hint)

        search_row = QHBoxLayout()
        search_row.addWidget(QLabel("Existing rules"))
        search_row.addStretch(1)
        self.search = QLineEdit()
        self.search.setPlaceholderText("Search by word or folder...")
        self.search.setClearButtonEnabled(True)
        self.search.textChanged.connect(self.apply_filter)
        search_row.addWidget(self.search)
        layout.addLayout(search_row)

        self.rules = QTableWidget(0, 4, self)
        self.rules.setHorizontalHeaderLabels(["Abbreviation", "Expansion", "Folder", "Manual"])
        header = self.rules.horizontalHeader()
        header.setSectionResizeMode(COL_EXPANSION, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(COL_MANUAL, QHeaderView.ResizeMode.ResizeToContents)
        self.rules.verticalHeader().setVisible(False)
        self.rules.setAlternatingRowColors(True)
        layout.addWidget(self.rules, 1)

        actions = QHBoxLayout()
        remove = QPushButton("Delete Selected")
        remove.setObjectName("warningButton")
        remove.clicked.connect(self._remove_selected)
        actions.addWidget(remove)
        actions.addStretch(1)
        layout.addLayout(actions)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        for rule in initial.replacements:
            self._insert_rule(self.rules.rowCount(), rule)

    def _insert_rule(self, row: int, rule: ExpansionRule) -> None:
        self.rules.insertRow(row)
        self.rules.setItem(row, COL_ABBREVIATION, QTableWidgetItem(rule.abbreviation))
        self.rules.setItem(row, COL_EXPANSION, QTableWidgetItem(rule.expansion))
        folder = QTableWidgetItem(rule.folder_scope)
        folder.setToolTip("Empty means everywhere")
        self.rules.setItem(row, COL_FOLDER, folder)
        manual = QTableWidgetItem()
        manual.setFlags(Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable | Qt.ItemFlag.ItemIsUserCheckable)
        manual.setCheckState(Qt.CheckState.Checked if rule.manual_only else Qt.CheckState.Unchecked)
        self.rules.setItem(row, COL_MANUAL, manual)

    def _add_from_inputs(self) -> None:
        abbreviation = self.new_abbreviation.text().strip()
        expansion = self.new_expansion.text().strip()
        if not abbreviation or not expansion:
            self.add_hint.setText("Fill in both 'Abbreviation' and 'Expansion'.")
            return
        rule = ExpansionRule(
            abbreviation=abbreviation,
            expansion=expansion,
            folder_scope=self.new_folder.text().strip(),
            manual_only=self.new_manual.isChecked(),
        )
        # Newest first: ties in rule resolution go to the earliest row.
        self._insert_rule(0, rule)
        self.new_abbreviation.clear()
        self.new_expansion.clear()
        self.new_folder.clear()
        self.new_manual.setChecked(False)
        self.add_hint.setText("")
        self.apply_filter()

    def _remove_selected(self) -> None:
        for idx in sorted(self.rules.selectionModel().selectedRows(), key=lambda i: i.row(), reverse=True):
            self.rules.removeRow(idx.row())

    def _cell_text(self, row: int, col: int) -> str:
        item = self.rules.item(row, col)
        return item.text() if item else ""

    def _row_rule(self, row: int) -> ExpansionRule:
        manual = self.rules.item(row, COL_MANUAL)
        return ExpansionRule(
            abbreviation=self._cell_text(row, COL_ABBREVIATION),
            expansion=self._cell_text(row, COL_EXPANSION),
            folder_scope=self._cell_text(row, COL_FOLDER),
            manual_only=bool(manual and manual.checkState() == Qt.CheckState.Checked),
        )

    def apply_filter(self) -> None:
        query = self.search.text()
        for row in range(self.rules.rowCount()):
            self.rules.setRowHidden(row, not matches_search(self._row_rule(row), query))

    def to_settings(self) -> ExpansionSettings:
        return ExpansionSettings(
            auto_replace_enabled=self.auto_replace.isChecked(),
            replacements=[self._row_rule(row) for row in range(self.rules.rowCount())],
        )


class MainWindow(QMainWindow):
    def __init__(self, settings_store: SettingsStore | None = None, root: Path | None = None) -> None:
        super().__init__()
        self.logger = logging.getLogger("shorthand.ui")
        self.setWindowTitle("Shorthand")
        self.resize(960, 720)
        self.root = root or Path.cwd()
        self.file_path: Path | None = None

        self.engine = ExpansionEngine(settings_store or SettingsStore.default(), notify=self.show_notice)
        self.engine.load()

        self.editor = QPlainTextEdit(self)
        self.editor.setPlaceholderText("Start typing. Abbreviations expand after a space or punctuation mark.")
        self.setCentralWidget(self.editor)
        self.buffer = QtEditorBuffer(self.editor)
        self.buffer.subscribe(self._on_buffer_changed)

        self._build_menus()
        self._apply_theme()
        self._update_title()

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        for label, shortcut, handler in [
            ("&Open...", QKeySequence.StandardKey.Open, self.open_file_dialog),
            ("&Save", QKeySequence.StandardKey.Save, self.save_file),
            ("Save &As...", QKeySequence.StandardKey.SaveAs, self.save_file_as),
        ]:
            action = QAction(label, self)
            action.setShortcut(QKeySequence(shortcut))
            action.triggered.connect(handler)
            file_menu.addAction(action)

        tools = self.menuBar().addMenu("&Tools")
        self.apply_action = QAction("Apply manual abbreviation rules to current document", self)
        self.apply_action.setShortcut(QKeySequence("Ctrl+Shift+E"))
        self.apply_action.triggered.connect(self.apply_manual_rules)
        tools.addAction(self.apply_action)
        rules_action = QAction("Abbreviation &rules...", self)
        rules_action.triggered.connect(self.open_rules_editor)
        tools.addAction(rules_action)

    def _apply_theme(self) -> None:
        self.setStyleSheet(
            f"""
            QWidget {{
                background: {THEME["bg"]};
                color: {THEME["text"]};
                font-size: 13px;
            }}
            QPlainTextEdit, QLineEdit, QTableWidget {{
                background: {THEME["panel"]};
                border: 1px solid {THEME["border"]};
                border-radius: 6px;
                selection-background-color: {THEME["accent"]};
                alternate-background-color: {THEME["bg"]};
            }}
            QPlainTextEdit {{
                font-size: 15px;
                padding: 10px;
            }}
            QPushButton {{
                background: {THEME["accent"]};
                color: white;
                border: none;
                border-radius: 6px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background: {THEME["accent_hover"]};
            }}
            #warningButton {{
                background: {THEME["warning"]};
            }}
            #hintLabel, QStatusBar {{
                color: {THEME["muted"]};
            }}
            QHeaderView::section {{
                background: {THEME["bg"]};
                color: {THEME["muted"]};
                border: none;
                padding: 4px;
            }}
            """
        )

    @property
    def document_path(self) -> str:
        return document_path_for(self.file_path, self.root)

    def show_notice(self, message: str) -> None:
        self.statusBar().showMessage(message, NOTICE_TIMEOUT_MS)

    def _on_buffer_changed(self) -> None:
        self.engine.on_buffer_changed(self.buffer, self.document_path)

    def apply_manual_rules(self) -> None:
        self.engine.apply_manual_rules_command(self.buffer, self.document_path)

    def open_rules_editor(self) -> None:
        dialog = RulesEditorDialog(self.engine.settings, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            self.show_notice("Changes discarded")
            return
        try:
            saved = self.engine.update_settings(dialog.to_settings())
        except OSError as exc:
            self.logger.exception("Failed to save settings")
            QMessageBox.critical(self, "Could not save settings", f"Could not write the settings file.\n\n{exc}")
            return
        self.show_notice(f"Settings saved. rules={len(saved.replacements)}")

    def open_file_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open Note", str(self.root), "Text files (*.md *.txt);;All files (*)")
        if path:
            self.open_file(Path(path))

    def open_file(self, path: Path) -> None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.exception("Failed to open %s", path)
            QMessageBox.critical(self, "Could not open file", f"{path}\n\n{exc}")
            return
        self.file_path = path
        self.editor.setPlainText(text)
        self._update_title()
        self.logger.info("Opened document. path=%s", self.document_path)

    def save_file(self) -> None:
        if self.file_path is None:
            self.save_file_as()
            return
        self._write_file(self.file_path)

    def save_file_as(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Save Note", str(self.root), "Markdown (*.md);;Text files (*.txt)")
        if path:
            self._write_file(Path(path))

    def _write_file(self, path: Path) -> None:
        try:
            path.write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError as exc:
            self.logger.exception("Failed to save %s", path)
            QMessageBox.critical(self, "Could not save file", f"{path}\n\n{exc}")
            return
        self.file_path = path
        self.editor.document().setModified(False)
        self._update_title()
        self.show_notice(f"Saved {self.document_path}")

    def _update_title(self) -> None:
        self.setWindowTitle(f"{self.document_path or 'Untitled'} - Shorthand")

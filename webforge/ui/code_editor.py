"""Plain text editing surface used for project files."""

from __future__ import annotations

from PyQt6 import QtCore, QtGui, QtWidgets


class CodeEditor(QtWidgets.QPlainTextEdit):
    """Emits ``changed`` for user edits only, never for ``set_value``."""

    changed = QtCore.pyqtSignal()

    def __init__(self, parent: QtWidgets.QWidget | None = None) -> None:
        super().__init__(parent)
        self.language = "plaintext"
        font = QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.SystemFont.FixedFont)
        font.setPointSize(11)
        self.setFont(font)
        self.setLineWrapMode(QtWidgets.QPlainTextEdit.LineWrapMode.NoWrap)
        self.setTabStopDistance(QtGui.QFontMetricsF(font).horizontalAdvance(" ") * 2)
        self.textChanged.connect(self.changed)

    def value(self) -> str:
        return self.toPlainText()

    def set_value(self, text: str) -> None:
        self.blockSignals(True)
        self.setPlainText(text)
        self.blockSignals(False)

    def set_language(self, language: str) -> None:
        self.language = language
        self.setPlaceholderText(f"{language} source")

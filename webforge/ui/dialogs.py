"""Sign-in and new project dialogs."""

from __future__ import annotations

from typing import Optional

from PyQt6 import QtWidgets

from ..core.auth import AuthClient
from ..core.errors import Result, ValidationError
from ..core.projects import ProjectRequest
from .workers import BackgroundRunner

PROJECT_TYPES = ["showcase", "portfolio", "blog", "landing", "shop"]
PROJECT_STYLES = ["modern", "minimal", "tech", "creative"]
PROJECT_FEATURES = ["contact_form", "newsletter", "gallery", "testimonials"]
PROJECT_PAGES = ["about", "services", "contact", "blog"]


# ---------------------------------------------------------------------------
# Sign in
# ---------------------------------------------------------------------------


class SignInDialog(QtWidgets.QDialog):
    def __init__(
        self, auth: AuthClient, runner: BackgroundRunner, parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Sign in to WebForge")
        self.resize(420, 260)
        self.auth = auth
        self.runner = runner

        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QFormLayout()
        self.email_edit = QtWidgets.QLineEdit(self)
        self.password_edit = QtWidgets.QLineEdit(self)
        self.password_edit.setEchoMode(QtWidgets.QLineEdit.EchoMode.Password)
        form.addRow("E-mail", self.email_edit)
        form.addRow("Password", self.password_edit)
        layout.addLayout(form)

        self.message = QtWidgets.QLabel("", self)
        self.message.setWordWrap(True)
        layout.addWidget(self.message)

        row = QtWidgets.QHBoxLayout()
        self.btn_sign_in = QtWidgets.QPushButton("Sign in", self)
        self.btn_sign_up = QtWidgets.QPushButton("Create account", self)
        self.btn_reset = QtWidgets.QPushButton("Forgot password?", self)
        row.addWidget(self.btn_sign_in)
        row.addWidget(self.btn_sign_up)
        row.addWidget(self.btn_reset)
        layout.addLayout(row)

        self.btn_sign_in.clicked.connect(self._sign_in)
        self.btn_sign_up.clicked.connect(self._sign_up)
        self.btn_reset.clicked.connect(self._reset)

    def _credentials(self) -> Optional[tuple[str, str]]:
        email = self.email_edit.text().strip()
        password = self.password_edit.text()
        if not email or not password:
            self.message.setText("E-mail and password are required.")
            return None
        return email, password

    def _busy(self, busy: bool) -> None:
        for button in (self.btn_sign_in, self.btn_sign_up, self.btn_reset):
            button.setEnabled(not busy)

    def _run(self, func, on_result) -> None:
        self._busy(True)

        def done(result: Optional[Result], error: Optional[Exception]) -> None:
            self._busy(False)
            if error is not None:
                self.message.setText(str(error))
                return
            on_result(result)

        self.runner.run(func, done)

    def _sign_in(self) -> None:
        creds = self._credentials()
        if creds is None:
            return

        def on_result(result: Result) -> None:
            if not result.ok:
                self.message.setText(f"Sign in failed: {result.error}")
                return
            self.accept()

        self._run(lambda: self.auth.sign_in_with_password(*creds), on_result)

    def _sign_up(self) -> None:
        creds = self._credentials()
        if creds is None:
            return

        def on_result(result: Result) -> None:
            if not result.ok:
                self.message.setText(f"Sign up failed: {result.error}")
            elif result.data and result.data.get("session"):
                self.accept()
            else:
                self.message.setText("Check your inbox to confirm your account, then sign in.")

        self._run(lambda: self.auth.sign_up(*creds), on_result)

    def _reset(self) -> None:
        email = self.email_edit.text().strip()
        if not email:
            self.message.setText("Enter your e-mail first.")
            return

        def on_result(result: Result) -> None:
            if result.ok:
                self.message.setText("A password reset link was sent.")
            else:
                self.message.setText(f"Could not send reset link: {result.error}")

        self._run(lambda: self.auth.reset_password(email), on_result)


# ---------------------------------------------------------------------------
# New project
# ---------------------------------------------------------------------------


class NewProjectDialog(QtWidgets.QDialog):
    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("New Project")
        self.resize(460, 460)
        self.request = ProjectRequest()

        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QFormLayout()
        self.name_edit = QtWidgets.QLineEdit(self)
        self.name_edit.setPlaceholderText("My Site")
        self.description_edit = QtWidgets.QPlainTextEdit(self)
        self.description_edit.setFixedHeight(70)
        self.type_combo = QtWidgets.QComboBox(self)
        self.type_combo.addItems(PROJECT_TYPES)
        self.style_combo = QtWidgets.QComboBox(self)
        self.style_combo.addItems(PROJECT_STYLES)
        form.addRow("Name", self.name_edit)
        form.addRow("Description", self.description_edit)
        form.addRow("Type", self.type_combo)
        form.addRow("Style", self.style_combo)
        layout.addLayout(form)

        layout.addWidget(self._checks_box("Features", PROJECT_FEATURES, self.request.toggle_feature))
        layout.addWidget(self._checks_box("Extra pages", PROJECT_PAGES, self.request.toggle_page))

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Ok | QtWidgets.QDialogButtonBox.StandardButton.Cancel,
            parent=self,
        )
        ok_button = buttons.button(QtWidgets.QDialogButtonBox.StandardButton.Ok)
        if ok_button is not None:
            ok_button.setText("Create")
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _checks_box(self, title: str, names: list[str], toggle) -> QtWidgets.QGroupBox:
        box = QtWidgets.QGroupBox(title, self)
        box_layout = QtWidgets.QVBoxLayout(box)
        for name in names:
            check = QtWidgets.QCheckBox(name.replace("_", " ").capitalize(), box)
            check.toggled.connect(lambda _checked, value=name: toggle(value))
            box_layout.addWidget(check)
        return box

    def _on_accept(self) -> None:
        self.request.type = self.type_combo.currentText()
        self.request.style = self.style_combo.currentText()
        self.request.name = self.name_edit.text()
        self.request.description = self.description_edit.toPlainText().strip()
        try:
            self.request.validate()
        except ValidationError as exc:
            QtWidgets.QMessageBox.warning(self, "New Project", exc.message)
            return
        self.accept()

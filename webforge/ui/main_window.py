"""Editor window: file list, code editor and live preview."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6 import QtCore, QtGui, QtWidgets
from PyQt6.QtWebEngineWidgets import QWebEngineView

from ..config import SettingsManager, previews_dir
from ..core.auth import SIGNED_OUT, AuthClient
from ..core.autosave import SAVE_DELAY_MS, DoneCallback, SaveStatus
from ..core.compositor import TempPreviewResource
from ..core.errors import Result
from ..core.models import VirtualFile
from ..core.projects import ProjectRequest, create_project
from ..core.remote import RemoteStore
from ..core.session import EditorSession
from ..core.templates import render_starter_files
from .code_editor import CodeEditor
from .dialogs import NewProjectDialog
from .workers import BackgroundRunner, qt_timer_factory

logger = logging.getLogger(__name__)

APP_TITLE = "WebForge Editor"

_STATUS_TEXT = {
    SaveStatus.IDLE: "",
    SaveStatus.PENDING: "Saving…",
    SaveStatus.SAVING: "Saving…",
    SaveStatus.SAVED: "Saved",
    SaveStatus.ERROR: "Error",
}


class EditorWindow(QtWidgets.QMainWindow):
    # Auth listeners can fire on worker threads.
    auth_event = QtCore.pyqtSignal(str)

    def __init__(
        self,
        store: RemoteStore,
        settings: SettingsManager,
        auth: Optional[AuthClient] = None,
        user_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1280, 800)

        self.store = store
        self.settings = settings
        self.auth = auth
        self.user_id = user_id
        self.session: Optional[EditorSession] = None
        self.runner = BackgroundRunner(self)
        self._unsubscribe: Optional[Callable[[], None]] = None

        self._build_ui()
        self._build_menu()
        self._bind_events()

    # ------------------------------------------------------------------ UI --
    def _build_ui(self) -> None:
        splitter = QtWidgets.QSplitter(self)
        splitter.setOrientation(QtCore.Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        # Files panel
        left_panel = QtWidgets.QWidget(self)
        left_layout = QtWidgets.QVBoxLayout(left_panel)
        left_layout.setContentsMargins(6, 6, 6, 6)
        left_layout.setSpacing(6)
        self.files_list = QtWidgets.QListWidget(left_panel)
        self.files_list.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)
        left_layout.addWidget(QtWidgets.QLabel("Files", left_panel))
        left_layout.addWidget(self.files_list, 1)

        # Editor
        mid_panel = QtWidgets.QWidget(self)
        mid_layout = QtWidgets.QVBoxLayout(mid_panel)
        mid_layout.setContentsMargins(6, 6, 6, 6)
        mid_layout.setSpacing(6)
        self.tab_name = QtWidgets.QLabel("", mid_panel)
        self.editor = CodeEditor(mid_panel)
        self.editor.setEnabled(False)
        mid_layout.addWidget(self.tab_name)
        mid_layout.addWidget(self.editor, 1)

        # Preview
        right_panel = QtWidgets.QWidget(self)
        right_layout = QtWidgets.QVBoxLayout(right_panel)
        right_layout.setContentsMargins(6, 6, 6, 6)
        right_layout.setSpacing(6)
        header = QtWidgets.QHBoxLayout()
        self.preview_host = QtWidgets.QLabel("", right_panel)
        self.btn_refresh = QtWidgets.QPushButton("Refresh", right_panel)
        header.addWidget(self.preview_host, 1)
        header.addWidget(self.btn_refresh)
        self.preview = QWebEngineView(right_panel)
        right_layout.addLayout(header)
        right_layout.addWidget(self.preview, 1)

        splitter.addWidget(left_panel)
        splitter.addWidget(mid_panel)
        splitter.addWidget(right_panel)
        splitter.setSizes([220, 560, 500])

        self.status = self.statusBar()
        self.save_status = QtWidgets.QLabel("", self)
        if self.status is not None:
            self.status.addPermanentWidget(self.save_status)

    def _build_menu(self) -> None:
        bar = self.menuBar()
        if bar is None:
            bar = QtWidgets.QMenuBar(self)
            self.setMenuBar(bar)

        file_menu = bar.addMenu("&File")
        self.act_new = QtGui.QAction("New Project…", self)
        self.act_open = QtGui.QAction("Open Project…", self)
        self.act_save = QtGui.QAction("Save", self)
        self.act_save.setShortcut(QtGui.QKeySequence.StandardKey.Save)
        self.act_refresh = QtGui.QAction("Refresh Preview", self)
        self.act_refresh.setShortcut(QtGui.QKeySequence("F5"))
        self.act_sign_out = QtGui.QAction("Sign Out", self)
        self.act_sign_out.setEnabled(self.auth is not None)
        self.act_quit = QtGui.QAction("Quit", self)

        if file_menu is not None:
            file_menu.addActions([self.act_new, self.act_open])
            file_menu.addSeparator()
            file_menu.addActions([self.act_save, self.act_refresh])
            file_menu.addSeparator()
            file_menu.addActions([self.act_sign_out, self.act_quit])

        help_menu = bar.addMenu("&Help")
        self.act_about = QtGui.QAction("About", self)
        if help_menu is not None:
            help_menu.addAction(self.act_about)

    def _bind_events(self) -> None:
        self.files_list.currentRowChanged.connect(self._on_file_selection_changed)
        self.editor.changed.connect(self._on_editor_changed)
        self.btn_refresh.clicked.connect(self.refresh_preview)

        self.act_new.triggered.connect(self.new_project_dialog)
        self.act_open.triggered.connect(self.open_project_dialog)
        self.act_save.triggered.connect(self.save_now)
        self.act_refresh.triggered.connect(self.refresh_preview)
        self.act_sign_out.triggered.connect(self.sign_out)
        self.act_quit.triggered.connect(self.close)
        self.act_about.triggered.connect(self.show_about)

        if self.auth is not None:
            self.auth_event.connect(self._on_auth_event)
            self._unsubscribe = self.auth.on_auth_state_change(
                lambda event, _session: self.auth_event.emit(event)
            )

    # ----------------------------------------------------------- Project Ops --
    def show_message(self, text: str, timeout: int = 4000) -> None:
        if self.status is not None:
            self.status.showMessage(text, timeout)

    def no_project(self) -> None:
        self.show_message("No project specified", 0)
        self.new_project_dialog()

    def open_project(self, project_id: str) -> None:
        self._close_session()
        self.session = EditorSession(
            project_id,
            self.store,
            timer_factory=qt_timer_factory(self),
            persist=self._persist,
            resource_factory=lambda html: TempPreviewResource(html, base_dir=previews_dir()),
            delay_ms=self.settings.get_int("autosave_delay_ms", SAVE_DELAY_MS),
            site_domain=self.settings.get("site_domain", "webforge.app"),
            on_status=self._on_save_status,
            on_preview=self._on_preview_ready,
            on_error=self._on_save_error,
        )
        session = self.session
        self.show_message("Loading project…", 0)
        self.runner.run(session.open, lambda result, error: self._on_session_loaded(session, result, error))

    def _on_session_loaded(
        self, session: EditorSession, result: Optional[Result], error: Optional[Exception]
    ) -> None:
        if session is not self.session or session.closed:
            return
        error = error or (result.error if result is not None else None)
        if error is not None:
            self.show_message("Could not load the project", 6000)
            QtWidgets.QMessageBox.warning(self, "Load error", f"Could not load the project:\n{error}")

        self._refresh_files_list()
        self.preview_host.setText(session.preview_host)
        self.update_window_title()
        if not session.files:
            self.show_message("This project has no files", 6000)
        self._load_current_into_editor()
        self.refresh_preview()

    def open_project_dialog(self) -> None:
        project_id, ok = QtWidgets.QInputDialog.getText(self, "Open Project", "Project id:")
        if ok and project_id.strip():
            self.open_project(project_id.strip())

    def new_project_dialog(self) -> None:
        dialog = NewProjectDialog(self)
        if dialog.exec() != QtWidgets.QDialog.DialogCode.Accepted:
            return
        request: ProjectRequest = dialog.request
        files = render_starter_files(request.name.strip(), request.description, request.pages)
        self.show_message("Creating project…", 0)

        def done(result, error: Optional[Exception]) -> None:
            if error is not None:
                self.show_message("Project creation failed", 6000)
                QtWidgets.QMessageBox.critical(self, "Error", f"Could not create the project:\n{error}")
                return
            project, _files = result
            self.open_project(project.id)

        self.runner.run(lambda: create_project(self.store, request, files, user_id=self.user_id), done)

    def sign_out(self) -> None:
        if self.auth is None:
            return
        self.act_sign_out.setEnabled(False)
        self.show_message("Signing out…", 0)

        def done(result: Optional[Result], error: Optional[Exception]) -> None:
            error = error or (result.error if result is not None else None)
            if error is None:
                return
            self.act_sign_out.setEnabled(True)
            self.show_message("Sign out failed", 6000)
            QtWidgets.QMessageBox.warning(self, "Sign out", f"Could not sign out:\n{error}")

        self.runner.run(self.auth.sign_out, done)

    def _on_auth_event(self, event: str) -> None:
        if event == SIGNED_OUT:
            self.close()

    # --------------------------------------------------------------- Files --
    def _refresh_files_list(self) -> None:
        self.files_list.blockSignals(True)
        self.files_list.clear()
        current_row = -1
        if self.session:
            for row, vfile in enumerate(self.session.files):
                self.files_list.addItem(vfile.path)
                if vfile is self.session.current:
                    current_row = row
        if current_row >= 0:
            self.files_list.setCurrentRow(current_row)
        self.files_list.blockSignals(False)

    def _on_file_selection_changed(self, row: int) -> None:
        if self.session is None or not (0 <= row < len(self.session.files)):
            return
        vfile = self.session.files[row]
        if vfile is self.session.current:
            return
        self.session.select(vfile)
        self._load_current_into_editor()

    def _load_current_into_editor(self) -> None:
        vfile: Optional[VirtualFile] = self.session.current if self.session else None
        if vfile is None:
            self.editor.set_value("")
            self.editor.setEnabled(False)
            self.tab_name.setText("")
            self.save_status.setText("")
            return
        self.editor.setEnabled(True)
        self.editor.set_language(vfile.language)
        self.editor.set_value(vfile.content)
        self.tab_name.setText(vfile.path)
        self.save_status.setText(_STATUS_TEXT[self.session.status_of(vfile)])

    # ---------------------------------------------------- Editing & Preview --
    def _on_editor_changed(self) -> None:
        if self.session is not None:
            self.session.edit(self.editor.value())

    def save_now(self) -> None:
        if self.session is not None:
            self.session.save_now()

    def _persist(self, file_id: str, content: str, done: DoneCallback) -> None:
        store = self.store
        self.runner.run(
            lambda: store.update_file_content(file_id, content),
            lambda _result, error: done(error),
        )

    def _on_save_status(self, file_id: str, status: SaveStatus) -> None:
        current = self.session.current if self.session else None
        if current is not None and current.id == file_id:
            self.save_status.setText(_STATUS_TEXT[status])

    def _on_save_error(self, file_id: str, error: Exception) -> None:
        vfile = self.session.file_store.get(file_id) if self.session else None
        name = vfile.path if vfile else file_id
        self.show_message(f"Could not save {name}: {error}", 8000)

    def refresh_preview(self) -> None:
        if self.session is not None:
            self.session.refresh_preview()

    def _on_preview_ready(self, url: str) -> None:
        self.preview.setUrl(QtCore.QUrl(url))

    # ---------------------------------------------------------------- Misc --
    def show_about(self) -> None:
        QtWidgets.QMessageBox.information(
            self,
            "About",
            f"{APP_TITLE}\n\nEdit your generated site and preview it live.",
        )

    def update_window_title(self) -> None:
        project = self.session.project if self.session else None
        name = project.name if project else "Untitled"
        self.setWindowTitle(f"{APP_TITLE} — {name}")

    def _close_session(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802 (Qt override)
        self._close_session()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.runner.wait_all()
        super().closeEvent(event)

import logging
import sys
from typing import List, Optional

from PyQt6 import QtWidgets

from .config import (
    SettingsManager,
    load_remote_config,
    local_store_path,
    session_path,
    setup_logging,
)
from .core.auth import AuthClient, SessionStore
from .core.remote import RemoteStore, SupabaseStore
from .core.session import project_id_from_args
from .core.storage import LocalStore
from .ui.dialogs import SignInDialog
from .ui.main_window import EditorWindow
from .ui.workers import BackgroundRunner

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    settings = SettingsManager()
    setup_logging(settings)

    app = QtWidgets.QApplication(argv)
    app.setApplicationName("WebForge")

    remote = load_remote_config(settings)
    auth: Optional[AuthClient] = None
    user_id: Optional[str] = None
    store: RemoteStore
    if remote.configured:
        auth = AuthClient(
            remote.url,
            remote.anon_key,
            SessionStore(session_path()),
            site_url=settings.get("site_url"),
        )
        session = auth.require_session()
        if session is None:
            dialog = SignInDialog(auth, BackgroundRunner(app))
            if dialog.exec() != QtWidgets.QDialog.DialogCode.Accepted:
                return 0
            session = auth.get_session().data
            if session is None:
                return 0
        user_id = session.user_id
        store = SupabaseStore(
            remote.url,
            remote.anon_key,
            token_provider=auth.access_token,
        )
    else:
        logger.info("No remote store configured, using %s", local_store_path())
        store = LocalStore(local_store_path())

    win = EditorWindow(store, settings, auth=auth, user_id=user_id)
    win.show()
    project_id = project_id_from_args(argv[1:])
    if project_id:
        win.open_project(project_id)
    else:
        win.no_project()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

# saucer: include runtime
import mock_chat_manager

from .runtime.mock_chat_app import app
from .runtime.sync import Runtime


def build_runtime(observer=None):
    return Runtime(app.init, app.update, app.view, mock_chat_manager.echo_reconciler(), observer)

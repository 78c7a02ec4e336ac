# saucer: include runtime
import saucer

from .runtime.mock_port_app import app
from .runtime.sync import Runtime


def build_runtime(observer=None):
    return Runtime(app.init, app.update, app.view, saucer.no_op_reconciler(), observer)

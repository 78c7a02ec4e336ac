"""Timer then HTTP call, then shutdown."""

# saucer: include runtime
from typing import Optional

import saucer

from .runtime.mock_app import app
from .runtime.sync import Runtime


def build_runtime(observer: Optional[saucer.Observer] = None) -> Runtime:
    return Runtime(app.init, app.update, app.view, saucer.no_op_reconciler(), observer or saucer.logging_observer())

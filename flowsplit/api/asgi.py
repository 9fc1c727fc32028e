"""
ASGI entrypoint for the flow splitter API.

    FLOWSPLIT_USER_DIR=/data uvicorn flowsplit.api.asgi:app --port 5002

Importing flowsplit.api.server doesn't construct an app; only this module does.
"""

import os
from pathlib import Path

from ..sync.host import LocalFlowHost
from ..sync.service import SplitterService
from .server import create_app

_host = LocalFlowHost(
    user_dir=Path(os.environ.get("FLOWSPLIT_USER_DIR", ".")).resolve(),
    flow_file=os.environ.get("FLOWSPLIT_FLOW_FILE", "flows.json"),
)

app = create_app(SplitterService(host=_host))

"""Cursor agent relay server."""

import os

os.umask(0o022)

from cursor_relay import create_relay_app, run_relay_app
from cursor_relay.platform.config import RelaySettings

settings = RelaySettings.from_env()
app = create_relay_app(settings, title="Cursor Relay Server")

if __name__ == "__main__":
    run_relay_app(app, settings=settings)

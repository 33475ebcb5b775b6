"""ASGI entrypoint for the macro-snap API."""

from macro_snap.api.app import create_app
from macro_snap.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the handover and return API."""

from handover_return.api.app import create_app
from handover_return.containers import build_container

app = create_app(build_container())

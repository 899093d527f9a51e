"""ASGI entrypoint for the Past Forward API."""

from past_forward.api.app import create_app
from past_forward.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the campus hub API."""

from campus_hub.api.app import create_app
from campus_hub.containers import build_container

app = create_app(build_container())

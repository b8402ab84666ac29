"""ASGI entrypoint for the AutoCheck API."""

from autocheck.api.app import create_app
from autocheck.containers import build_container

app = create_app(build_container())

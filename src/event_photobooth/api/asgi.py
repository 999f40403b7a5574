"""ASGI entrypoint for the event photobooth API."""

from event_photobooth.api.app import create_app
from event_photobooth.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the listing studio API."""

from listing_studio.api.app import create_app
from listing_studio.containers import build_container

app = create_app(build_container())

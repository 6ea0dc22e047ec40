"""Dependency providers for the Overlay Query webservice."""

from datetime import datetime
from typing import Callable

from fastapi import Request

from overlay_query.configs import Settings
from overlay_query.store.record_store import RecordStore


def get_record_store(request: Request) -> RecordStore:
    """Return the record store the app was built with."""
    return request.app.state.record_store


def get_settings(request: Request) -> Settings:
    """Return the app settings."""
    return request.app.state.settings


def get_clock(request: Request) -> Callable[[], datetime]:
    """Return the clock used to capture "now" once per request."""
    return request.app.state.clock

"""Test helper utilities for todobi tests.

This package provides document factories and a fake remote transport
shared by the unit and UI tests.
"""

from tests.helpers.factories import (
    BASE_TIME,
    FakeTransport,
    at,
    make_category,
    make_document,
    make_task,
)

__all__ = [
    "BASE_TIME",
    "FakeTransport",
    "at",
    "make_category",
    "make_document",
    "make_task",
]

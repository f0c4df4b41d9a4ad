"""Shared schema types."""

from typing import Literal

ErrorKind = Literal[
    "configuration",
    "submit",
    "poll",
    "timeout",
    "duplicate",
    "validation",
    "unexpected",
]

"""Strongly typed identifiers for domain entities."""

from typing import NewType

PostId = NewType("PostId", int)
MemberId = NewType("MemberId", int)

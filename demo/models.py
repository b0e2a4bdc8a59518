"""
Foreign types served by the demo.

These stand in for types owned by another library: plain dataclasses with
no knowledge of OpenAPI.
"""

from dataclasses import dataclass
from typing import NewType


@dataclass
class ForeignType:
    text: str


# Single-field wrapper; documented exactly like ForeignType.
WrappedForeign = NewType("WrappedForeign", ForeignType)

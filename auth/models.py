"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/, catalog/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass
class User:
    """A principal: an account that can log in and act on resources.

    level is an ordered privilege tier where LOWER numbers mean MORE access:
      0 -- staff, may manage users and products
      1 -- editor, may manage products
      2+ -- customer, read-only on the public catalog

    hashed_password is the bcrypt hash. It never leaves the process -- API
    response models omit it.
    """

    username: str
    level: int
    id: int | None = None
    hashed_password: str | None = None
    created_at: str | None = None


class ResourceClass(Enum):
    """Category of protected operation, valued by its minimum privilege level.

    A user may act on a resource class when user.level <= min_level.
    """

    USER = 0
    PRODUCT = 1

    @property
    def min_level(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()

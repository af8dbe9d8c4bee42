"""
catalog/models.py -- Domain dataclasses for the NeonThreads product catalog.

These are pure data containers with zero logic. Persistence lives in
catalog/store.py; the JSON wire shape lives in api/models.py.
"""

from dataclasses import dataclass
from typing import Optional

# Product types with dedicated listing routes (GET /api/products/<type>s).
TRACKSUIT = "tracksuit"
WINDBREAKER = "windbreaker"


@dataclass
class Product:
    """A garment listed in the store.

    small / medium / large are units in stock per size. title is unique and
    doubles as the URL key: "Neon Track Top" is served at
    /api/products/Neon-Track-Top.

    id is None before the record is written to the database.
    """

    type: str  # "tracksuit" | "windbreaker" | ...
    title: str
    price: float
    description: str = ""
    gender: str = ""  # "men" | "women" | "unisex"
    color: str = ""
    small: int = 0
    medium: int = 0
    large: int = 0
    image_url: str = ""
    image_alt: str = ""
    id: Optional[int] = None

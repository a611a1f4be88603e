"""Album record as stored in the `album:<id>` hash."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

CENTS = Decimal("0.01")

# Hash fields, in the order they are written.
FIELDS = ("id", "title", "artist", "price", "likes")


@dataclass(frozen=True)
class Album:
    id: int
    title: str
    artist: str
    price: Decimal
    likes: int = 0

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise ValueError(f"album id must be positive, got {self.id}")
        if self.price < 0:
            raise ValueError(f"album price must be non-negative, got {self.price}")
        if self.likes < 0:
            raise ValueError(f"album likes must be non-negative, got {self.likes}")
        object.__setattr__(self, "price", Decimal(self.price).quantize(CENTS))

    @property
    def display(self) -> str:
        return f"{self.title} by {self.artist}: £{self.price:.2f} [{self.likes} likes]"

    def to_hash(self) -> dict[str, str]:
        """Serialize to the flat string mapping written with HSET."""
        return {
            "id": str(self.id),
            "title": self.title,
            "artist": self.artist,
            "price": str(self.price),
            "likes": str(self.likes),
        }

    @classmethod
    def from_hash(cls, data: dict[str, str]) -> Album:
        """Build an Album from an HGETALL reply.

        Raises:
            ValueError: If a field is missing or cannot be parsed.
        """
        missing = [f for f in FIELDS if f not in data]
        if missing:
            raise ValueError(f"album hash is missing fields: {missing}")
        try:
            return cls(
                id=int(data["id"]),
                title=data["title"],
                artist=data["artist"],
                price=Decimal(data["price"]),
                likes=int(data["likes"]),
            )
        except (TypeError, InvalidOperation) as e:
            raise ValueError(f"album hash has an invalid field: {e}") from e

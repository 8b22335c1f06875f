from __future__ import annotations


class Book:
    """A single book record and its count of available copies."""

    def __init__(self, id: str, title: str, author: str, quantity: int = 0) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.quantity = quantity

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r}, quantity={self.quantity!r})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "quantity": self.quantity,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Missing fields fall back to zero values, like the JSON binder
        return Book(
            id=data.get("id", ""),
            title=data.get("title", ""),
            author=data.get("author", ""),
            quantity=data.get("quantity", 0),
        )

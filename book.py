from __future__ import annotations

from dataclasses import dataclass, fields

# Field order of the create/update multipart payloads
FORM_FIELDS = ("book_id", "book_name", "book_description", "book_published", "book_price")
EDITABLE_FIELDS = ("book_name", "book_description", "book_published", "book_price")


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class BookRecord:
    """A single book entry as held by the catalog view."""

    def __init__(self, book_id: str, book_name: str = "", book_description: str = "",
                 book_published: str = "", book_price: str = "", is_editing: bool = False,
                 extra: dict | None = None) -> None:
        self.book_id = _as_text(book_id)
        self.book_name = _as_text(book_name)
        self.book_description = _as_text(book_description)
        self.book_published = _as_text(book_published)
        self.book_price = _as_text(book_price)
        # UI-only, never sent to the server
        self.is_editing = is_editing
        # Unknown server keys, kept but not re-sent
        self.extra = dict(extra or {})

    def __repr__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"BookRecord(book_id={self.book_id!r}, book_name={self.book_name!r})"

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.book_name} (ID: {self.book_id})"

    def to_payload(self) -> dict:
        return {name: getattr(self, name) for name in FORM_FIELDS}

    def to_dict(self) -> dict:
        data = self.to_payload()
        data["is_editing"] = self.is_editing
        return data

    @staticmethod
    def from_dict(data: dict) -> "BookRecord":
        extra = {k: v for k, v in data.items() if k not in FORM_FIELDS and k != "is_editing"}
        return BookRecord(
            book_id=data.get("book_id"),
            book_name=data.get("book_name"),
            book_description=data.get("book_description"),
            book_published=data.get("book_published"),
            book_price=data.get("book_price"),
            is_editing=False,
            extra=extra,
        )


@dataclass
class BookForm:
    """State of the creation form."""
    book_id: str = ""
    book_name: str = ""
    book_description: str = ""
    book_published: str = ""
    book_price: str = ""

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, "")

    def to_payload(self) -> dict:
        return {name: getattr(self, name) for name in FORM_FIELDS}

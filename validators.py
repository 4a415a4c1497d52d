import re
from typing import Optional

from book import BookForm, FORM_FIELDS


FIELD_LABELS = {
    "book_id": "Book ID",
    "book_name": "Book Name",
    "book_description": "Book Description",
    "book_published": "Published Date (YYYY-MM-DD)",
    "book_price": "Book Price",
}


class FormValidator:
    """Checks the creation form the way the browser form did before submitting.

    Only presence and shape are checked. Dates such as 2024-13-45 pass, as they
    did in the page's pattern hint.
    """

    PUBLISHED_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
    PRICE_PATTERN = re.compile(r"\d+(\.\d{1,2})?")

    @staticmethod
    def is_valid_published(value: Optional[str]) -> bool:
        return bool(value) and FormValidator.PUBLISHED_PATTERN.fullmatch(value) is not None

    @staticmethod
    def is_valid_price(value: Optional[str]) -> bool:
        return bool(value) and FormValidator.PRICE_PATTERN.fullmatch(value) is not None

    @staticmethod
    def first_problem(form: BookForm) -> Optional[str]:
        """Return a message for the first invalid field, or None if the form can be sent."""
        for name in FORM_FIELDS:
            if not getattr(form, name):
                return f"{FIELD_LABELS[name]} is required."
        if not FormValidator.is_valid_published(form.book_published):
            return "Published Date must use the format YYYY-MM-DD."
        if not FormValidator.is_valid_price(form.book_price):
            return "Book Price must be a number with up to 2 decimal places."
        return None

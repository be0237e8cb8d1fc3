from typing import Optional, Union


class TextValidator:
    """Checks for ids, titles and names typed at the console."""

    @staticmethod
    def clean_identifier(raw: Optional[str], label: str = "ID") -> str:
        if raw is None:
            raise ValueError(f"{label} cannot be empty.")
        value = raw.strip()
        if not value:
            raise ValueError(f"{label} cannot be empty.")
        if any(ch.isspace() for ch in value):
            raise ValueError(f"{label} cannot contain spaces.")
        return value

    @staticmethod
    def clean_text(raw: Optional[str], label: str) -> str:
        if raw is None or not raw.strip():
            raise ValueError(f"{label} cannot be empty.")
        return raw.strip()


class NumberValidator:
    """Parsing for the numeric fields of books and DVDs."""

    @staticmethod
    def parse_positive_int(raw: Union[int, str, None], label: str) -> int:
        if raw is None:
            raise ValueError(f"{label} is required.")
        if isinstance(raw, bool):
            raise ValueError(f"{label} must be a whole number.")
        if isinstance(raw, int):
            value = raw
        else:
            text = raw.strip()
            try:
                value = int(text)
            except ValueError:
                raise ValueError(f"{label} must be a whole number, got '{text}'.") from None
        if value <= 0:
            raise ValueError(f"{label} must be greater than zero.")
        return value

    @staticmethod
    def parse_year(raw: Union[int, str, None]) -> int:
        year = NumberValidator.parse_positive_int(raw, "Publication year")
        if year > 9999:
            raise ValueError("Publication year must have at most four digits.")
        return year

    @staticmethod
    def parse_duration(raw: Union[int, str, None]) -> int:
        return NumberValidator.parse_positive_int(raw, "Duration")

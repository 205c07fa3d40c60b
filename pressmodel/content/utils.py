"""Text helpers shared by content types."""

import re
import unicodedata


def slugify(value: str) -> str:
    """
    Lowercase, ASCII, hyphen-separated form of a title.

    Example:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    value = unicodedata.normalize("NFKD", str(value)).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    return re.sub(r"[-\s_]+", "-", value).strip("-")

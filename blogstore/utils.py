import re
import unicodedata
from datetime import datetime


def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "untitled"


def post_slug(title: str, published: datetime, title_chars: int = 26) -> str:
    """Slug for a post: the start of its title followed by its publish date.

    >>> post_slug("Hello, World", datetime(2024, 3, 9))
    'hello-world-2024-03-09'
    """
    return f"{slugify(title[:title_chars])}-{published:%Y-%m-%d}"

"""MediaReference value object - locator into the external media store."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MediaReference:
    """
    Opaque locator for a stored object plus its resource kind.

    Not a table: persisted as the media_url/media_type column pair on the
    owning row (or picture_url on accounts, which is always an image).
    """

    url: str
    kind: str  # 'image' or 'video'
    key: Optional[str] = None  # Object key in the bucket, when known

    @classmethod
    def from_columns(cls, url: Optional[str], kind: Optional[str]) -> Optional["MediaReference"]:
        """Build a reference from stored columns, None when no media is attached."""
        if not url:
            return None
        return cls(url=url, kind=kind or "image")

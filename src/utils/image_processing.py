"""Image re-encoding for uploads to the media store."""
from io import BytesIO
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


@dataclass
class EncodedImage:
    """Result of re-encoding an uploaded image."""

    data: bytes
    width: int
    height: int
    source_format: str
    content_type: str = "image/webp"


class ImageProcessor:
    """Normalize uploaded images to WebP."""

    OUTPUT_FORMAT = "WEBP"
    DEFAULT_QUALITY = 80

    def to_webp(self, data: bytes, quality: int = DEFAULT_QUALITY) -> EncodedImage:
        """
        Decode an image payload and re-encode it as WebP.

        Args:
            data: Raw image bytes (JPEG, PNG, GIF, WebP, ...)
            quality: WebP quality, 1-100

        Returns:
            EncodedImage with the WebP bytes and source dimensions

        Raises:
            ValueError: If the payload is not a readable image
        """
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Unreadable image payload: {e}") from e

        source_format = img.format or "UNKNOWN"
        width, height = img.size

        # WebP only takes RGB/RGBA; keep alpha when the source has it
        if img.mode not in ("RGB", "RGBA"):
            has_alpha = img.mode in ("LA", "PA") or (
                img.mode == "P" and "transparency" in img.info
            )
            img = img.convert("RGBA" if has_alpha else "RGB")

        output = BytesIO()
        img.save(output, format=self.OUTPUT_FORMAT, quality=quality)

        return EncodedImage(
            data=output.getvalue(),
            width=width,
            height=height,
            source_format=source_format,
        )

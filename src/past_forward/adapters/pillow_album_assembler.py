"""Pillow-based album page renderer."""

import io
import math
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont, ImageOps

from past_forward.domain.media import EncodedMedia
from past_forward.services.album import AlbumAssembler

_BACKGROUND = (5, 10, 25)
_CARD = (250, 248, 240)
_INK = (40, 40, 40)
_TITLE_INK = (103, 232, 249)


@dataclass
class PillowAlbumAssembler(AlbumAssembler):
    """Lays decade images out as captioned polaroids on a single JPEG page."""

    title: str = "Generated with Past Forward"
    columns: int = 4
    photo_size: int = 600
    border: int = 30
    caption_height: int = 110
    gutter: int = 60
    header_height: int = 220
    quality: int = 90

    def assemble(self, images: dict[str, EncodedMedia]) -> EncodedMedia:
        """Compose the images in the mapping's order."""
        if not images:
            raise ValueError("An album needs at least one image")
        columns = max(1, min(self.columns, len(images)))
        rows = math.ceil(len(images) / columns)
        card_width = self.photo_size + 2 * self.border
        card_height = self.photo_size + self.border + self.caption_height
        width = columns * card_width + (columns + 1) * self.gutter
        height = self.header_height + rows * (card_height + self.gutter)

        page = Image.new("RGB", (width, height), _BACKGROUND)
        draw = ImageDraw.Draw(page)
        title_font = _font(72)
        caption_font = _font(56)
        draw.text(
            (width / 2, self.header_height / 2),
            self.title,
            fill=_TITLE_INK,
            font=title_font,
            anchor="mm",
        )

        for index, (decade, media) in enumerate(images.items()):
            row, column = divmod(index, columns)
            left = self.gutter + column * (card_width + self.gutter)
            top = self.header_height + row * (card_height + self.gutter)
            draw.rectangle(
                (left, top, left + card_width, top + card_height), fill=_CARD
            )
            photo = _open_photo(media, self.photo_size)
            page.paste(photo, (left + self.border, top + self.border))
            draw.text(
                (
                    left + card_width / 2,
                    top + self.border + self.photo_size + self.caption_height / 2,
                ),
                decade,
                fill=_INK,
                font=caption_font,
                anchor="mm",
            )

        buffer = io.BytesIO()
        page.save(buffer, format="JPEG", quality=self.quality)
        return EncodedMedia(mime_type="image/jpeg", data=buffer.getvalue())


def _open_photo(media: EncodedMedia, size: int) -> Image.Image:
    """Decode an image and crop it to a centered square."""
    with Image.open(io.BytesIO(media.data)) as img:
        converted = img.convert("RGB")
    return ImageOps.fit(converted, (size, size))


def _font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default(size=size)

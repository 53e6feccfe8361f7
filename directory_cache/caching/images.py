"""
Image URL building for cached page data.

URLs are computed from image metadata already loaded with the row, so caching
a page never costs one query per image. Resizing parameters go in the query
string (`w`, `h`, `q`) and are applied by the image endpoint.
"""

from urllib.parse import urlencode

from directory_cache.core.config.constants import IMAGE_URL_BASE
from directory_cache.data.models import ImageRef


def image_url(
    image: ImageRef,
    width: int | None = None,
    height: int | None = None,
    quality: int | None = None,
) -> str:
    params = {
        name: value
        for name, value in (("w", width), ("h", height), ("q", quality))
        if value
    }
    path = f"{IMAGE_URL_BASE}/{image.id}"
    return f"{path}?{urlencode(params)}" if params else path

from .materialize import CONVERSION_COPY_SUFFIX, Materializer
from .render import PageRenderer, page_filename, render_pages_to_images

__all__ = [
    "Materializer",
    "CONVERSION_COPY_SUFFIX",
    "PageRenderer",
    "page_filename",
    "render_pages_to_images",
]

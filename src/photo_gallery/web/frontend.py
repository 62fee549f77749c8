"""HTML pages of the gallery, rendered from packaged jinja2 templates."""

from __future__ import annotations

import os

from jinja2 import Environment, PackageLoader, select_autoescape

from photo_gallery.core.models import ThumbnailRecord
from photo_gallery.core.services import GalleryContext

jinja_env = Environment(
    loader=PackageLoader("photo_gallery.web", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
)
jinja_env.filters["basename"] = os.path.basename
jinja_env.tests["thumbnail"] = lambda entry: isinstance(entry, ThumbnailRecord)


def render_index(context: GalleryContext) -> str:
    """Grid of every thumbnail, in enumeration order."""
    entries = [
        (number, entry)
        for number, entry in enumerate(context.index or [])
        if entry is not None
    ]
    template = jinja_env.get_template("index.html")
    return template.render(
        count=context.photo_count,
        entries=entries,
        config=context.config,
    )


def render_view(context: GalleryContext, photo_number: int) -> str:
    """Single photo page with previous/next links (absent at either end)."""
    entry = context.photo(photo_number)
    if entry is None:
        raise LookupError(photo_number)
    template = jinja_env.get_template("view.html")
    return template.render(
        number=photo_number,
        count=context.photo_count,
        entry=entry,
        config=context.config,
    )

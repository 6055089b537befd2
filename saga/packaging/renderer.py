"""Render feed entries into chapter XHTML."""

from __future__ import annotations

from jinja2 import BaseLoader, Environment

from saga.feeds.models import Candidate

_DEFAULT_TEMPLATE = """<h1>{{ title }}</h1>
<p class="feed">{{ feed_title }}</p>
{% if authors %}
<p class="authors">{{ authors | join(", ") }}</p>
{% endif %}
<p class="published">{{ published }}</p>
<div class="body">
{{ body | safe }}
</div>
"""


class ChapterRenderer:
    """Render a candidate into the body of an EPUB chapter.

    Titles and author names are escaped; the entry body is inserted as-is
    because it was sanitised when the feed was parsed.
    """

    def __init__(self, template: str | None = None) -> None:
        env = Environment(loader=BaseLoader(), autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self._template = env.from_string(template or _DEFAULT_TEMPLATE)

    def render(self, candidate: Candidate) -> str:
        return self._template.render(
            title=candidate.title,
            feed_title=candidate.feed_title,
            authors=list(candidate.authors),
            published=candidate.published.strftime("%Y-%m-%d %H:%M UTC"),
            body=candidate.body,
        ).strip() + "\n"


__all__ = ["ChapterRenderer"]

"""Output file and URL derivation for rendered pages.

Use cases:
  - default: path + filename + extension (blog/post-1/index.html)
  - subpath: path + subpath + filename + extension (blog/post-1/amp/index.html)
  - ugly: path + extension (404.html, sitemap.xml, robots.txt)
  - path only (_redirects)
  - l10n: language + path + filename + extension (fr/blog/page/index.html)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from sitekit.foundation.paths import join_path
from sitekit.framework.config import OutputFormat, SiteConfig


class PageItem(Protocol):
    path: str
    language: str | None
    variables: Mapping[str, Any]


@dataclass
class PageRef:
    path: str = ""
    language: str | None = None
    variables: dict[str, Any] = field(default_factory=dict)


class OutputPathResolver:
    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    def _format(self, fmt: str | OutputFormat) -> OutputFormat:
        if isinstance(fmt, OutputFormat):
            return fmt
        return self.config.output_format(fmt)

    def output_file(self, page: PageItem, fmt: str | OutputFormat = "html") -> str:
        output_format = self._format(fmt)
        path = page.path or ""
        filename = output_format.filename
        extension = output_format.extension
        language = page.language

        if page.variables.get("uglyurl"):
            filename = ""
        if extension:
            extension = f".{extension}"
        if not path and not filename:
            path = "index"
        if language is None or language == self.config.language_default:
            language = ""

        return join_path(language, path, output_format.subpath, filename) + extension

    def url(self, page: PageItem, fmt: str | OutputFormat = "html") -> str:
        output = self.output_file(page, fmt)
        if not page.variables.get("uglyurl") and output.endswith("index.html"):
            output = output[: -len("index.html")]
        return output

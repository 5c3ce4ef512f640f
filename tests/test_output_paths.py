import pytest

from sitekit.framework.config import OutputFormat
from sitekit.framework.output_paths import PageRef


@pytest.fixture
def resolver(make_session):
    return make_session().output_paths()


def test_homepage(resolver):
    assert resolver.output_file(PageRef()) == "index.html"
    assert resolver.url(PageRef()) == ""


def test_regular_page(resolver):
    page = PageRef(path="blog/post-1")

    assert resolver.output_file(page) == "blog/post-1/index.html"
    assert resolver.url(page) == "blog/post-1/"


def test_ugly_url(resolver):
    page = PageRef(path="404", variables={"uglyurl": True})

    assert resolver.output_file(page) == "404.html"
    assert resolver.url(page) == "404.html"


def test_other_formats(resolver):
    assert resolver.output_file(PageRef(path="sitemap", variables={"uglyurl": True}), "xml") == "sitemap.xml"
    assert resolver.output_file(PageRef(path="blog"), "json") == "blog/index.json"


def test_subpath_format(resolver):
    amp = OutputFormat(subpath="amp", filename="index", extension="html")

    assert resolver.output_file(PageRef(path="blog/post-1"), amp) == "blog/post-1/amp/index.html"


def test_path_only_format(resolver):
    redirects = OutputFormat(subpath="", filename="", extension="")

    assert resolver.output_file(PageRef(path="_redirects"), redirects) == "_redirects"


def test_language_prefix(resolver):
    assert resolver.output_file(PageRef(path="blog/page", language="fr")) == "fr/blog/page/index.html"
    assert resolver.output_file(PageRef(path="blog/page", language="en")) == "blog/page/index.html"


def test_configured_formats_replace_defaults(make_session):
    resolver = make_session(
        {"output": {"formats": {"rss": {"filename": "feed", "extension": "xml"}}}}
    ).output_paths()

    assert resolver.output_file(PageRef(path="blog"), "rss") == "blog/feed.xml"
    with pytest.raises(ValueError, match=r"Unknown output format: html \(available: rss\)"):
        resolver.output_file(PageRef(path="blog"))

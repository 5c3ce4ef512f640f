import os

from sitekit.foundation.paths import extension_of, is_url, join_file, join_path, sanitize, slugify


def test_join_path_drops_empty_segments_and_keeps_leading_slash():
    assert join_path("", "index", "", "") == "index"
    assert join_path("fr", "blog/post", "amp", "index") == "fr/blog/post/amp/index"
    assert join_path("/assets/", "thumbnails", "100", "/img/a.png") == "/assets/thumbnails/100/img/a.png"


def test_join_file_appends_url_segments(tmp_path):
    assert join_file(str(tmp_path), "/css/site.css") == os.path.join(str(tmp_path), "css", "site.css")


def test_sanitize_replaces_reserved_characters():
    assert sanitize('a<b>c:d"e\\f|g?h*i') == "a_b_c_d_e_f_g_h_i"


def test_slugify():
    assert slugify("fonts.googleapis.com/css2-family=Roboto:wght@400") == "fonts.googleapis.com/css2-family-roboto-wght-400"
    assert slugify("Déjà Vu") == "deja-vu"


def test_is_url_and_extension_of():
    assert is_url("https://example.com/a.png")
    assert not is_url("images/a.png")
    assert extension_of("/images/photo.large.JPG") == "JPG"
    assert extension_of("/fonts/css2") == ""

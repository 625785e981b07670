"""
Tests for the templated HTML pages.

Run with: python -m pytest tests/test_pages.py
"""

import os

from server.pages import TEMPLATE_DIR, bear_page, index_page, loading_page, not_found_page

BEAR = {"id": "finlay-1", "name": "Finlay", "city": "London", "country": "United Kingdom"}


def test_templates_exist():
    for name in ("layout.html", "bear.html", "index.html", "reload.html"):
        assert os.path.isfile(os.path.join(TEMPLATE_DIR, name))


def test_bear_page_fills_template_and_escapes_input():
    page = bear_page(
        BEAR,
        "<html>map</html>",
        "#ff7f0e",
        error="That city does not seem to be in the country you entered.",
        form={"city": '"><script>', "country": "Germany", "message": ""},
    )

    assert "$" not in page
    assert "Finlay's Journey" in page
    assert 'action="/bear/finlay-1/update"' in page
    assert 'value="&quot;&gt;&lt;script&gt;"' in page
    assert 'value="Germany"' in page
    assert '<p class="error">' in page
    assert 'srcdoc="&lt;html&gt;map&lt;/html&gt;"' in page
    assert 'var bearId = "finlay-1";' in page
    assert "Back to All Bears" in page


def test_index_page_legend_links_every_bear():
    other = {"id": "finlay-2", "name": "<Aimee>"}
    page = index_page([BEAR, other], "", {"finlay-1": "#111111", "finlay-2": "#222222"})

    assert 'href="/bear/finlay-1"' in page
    assert "&lt;Aimee&gt;" in page
    assert "#222222" in page
    assert "var bearId = null;" in page
    assert "Back to All Bears" not in page


def test_reload_script_cannot_close_script_tag():
    page = bear_page(dict(BEAR, id="</script><b>"), "", "#000000")
    assert "</script><b>" not in page


def test_placeholder_pages():
    assert "Loading..." in loading_page()
    assert "nobody" in not_found_page("nobody")

from __future__ import annotations

from quince.extractor.html import analyse_html


def test_analyse_html_collects_markup_metadata() -> None:
    html = """
    <html lang="EN-gb">
      <head><style>body { color: blue; }</style><script>var x = "hidden";</script></head>
      <body bgcolor="#FFFFFF" text="Black">
        <p style="color: Red; background-color:#FFF">Limited &amp; exclusive offer</p>
        <a href="http://Shop.Example.com/buy">Buy now</a>
        <area href="http://map.example.com/">
        <form action="https://collect.example.net/submit"></form>
        <span xml:lang="fr">Bonjour</span>
      </body>
    </html>
    """

    analysis = analyse_html(html)

    assert analysis.link_urls == [
        "http://Shop.Example.com/buy",
        "http://map.example.com/",
        "https://collect.example.net/submit",
    ]
    assert "#ffffff" in analysis.colors
    assert "black" in analysis.colors
    assert "red" in analysis.colors
    assert "#fff" in analysis.colors
    assert "en-gb" in analysis.languages
    assert "Limited & exclusive offer" in analysis.text_content
    assert "Buy now" in analysis.text_content
    assert "hidden" not in analysis.text_content
    assert "color: blue" not in analysis.text_content


def test_analyse_html_plain_fragment() -> None:
    analysis = analyse_html("just <b>bold</b> words")

    assert analysis.text_content == "just bold words"
    assert analysis.link_urls == []
    assert analysis.colors == []
    assert analysis.languages == []

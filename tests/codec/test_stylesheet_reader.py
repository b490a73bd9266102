import pytest

from rainbowstego.codec.stylesheet import StylesheetError, parse_stylesheet


def test_nested_keyframes_and_comments():
    rules = parse_stylesheet(
        """
        /* header */
        @keyframes fade { 0% { opacity: 1; } 100% { opacity: 0; } }
        .a { font-family: 'A; B', sans-serif; background: url("x(1).png") }
        """
    )
    assert rules[0].prelude == "@keyframes fade"
    assert [rule.prelude for rule in rules[0].rules] == ["0%", "100%"]
    assert rules[1].get("font-family") == "'A; B', sans-serif"
    assert rules[1].get("background") == 'url("x(1).png")'
    assert rules[1].names() == ["font-family", "background"]


@pytest.mark.parametrize(
    "text",
    [
        ".a { color: red;",
        ".a { color: red; } }",
        ".a { : red; }",
        ".a { color: ; }",
        "/* open",
        ".a { color: rgb(1 2 3)); }",
    ],
)
def test_malformed_stylesheets(text):
    with pytest.raises(StylesheetError):
        parse_stylesheet(text)

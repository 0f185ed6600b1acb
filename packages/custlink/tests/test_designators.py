"""Tests for designator handling."""

from custlink.designators import has_business_suffix, is_designator, strip_designators, tokenize


def test_tokenize_strips_punctuation():
    assert tokenize("Acme, L.L.C.") == ["acme", "llc"]


def test_tokenize_drops_empty_tokens():
    assert tokenize("Acme - Holdings") == ["acme", "holdings"]


def test_is_designator():
    assert is_designator("corp")
    assert is_designator("corporation")
    assert not is_designator("holdings")


def test_strip_trailing_designator():
    core, removed = strip_designators(["acme", "corp"])
    assert core == ["acme"]
    assert removed == ["corp"]


def test_strip_multiple_trailing_designators():
    core, removed = strip_designators(["acme", "holdings", "inc", "llc"])
    assert core == ["acme", "holdings"]
    assert removed == ["inc", "llc"]


def test_leading_designator_kept():
    core, removed = strip_designators(["company", "store"])
    assert core == ["company", "store"]
    assert removed == []


def test_min_tokens_safety():
    """A name made only of designators is left alone."""
    core, removed = strip_designators(["inc"])
    assert core == ["inc"]
    assert removed == []


def test_has_business_suffix():
    assert has_business_suffix(["acme", "corp"])
    assert has_business_suffix(["acme", "co"])
    assert not has_business_suffix(["jane", "doe"])
    assert not has_business_suffix(["cocoa", "farms"])

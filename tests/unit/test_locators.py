import pytest

from resilient_ui.framework.locators import FRAMES, Locator, LocatorKind, indexed_frame


def test_equality_is_kind_and_expression():
    assert Locator.xpath("//a") == Locator(LocatorKind.XPATH, "//a")
    assert Locator.xpath("//a") != Locator.css("//a")
    assert len({Locator.id("save"), Locator.id("save"), Locator.name("save")}) == 2


def test_parse_explicit_kind():
    assert Locator.parse("css=#login") == Locator.css("#login")
    assert Locator.parse("test_id=save-button") == Locator.test_id("save-button")
    assert Locator.parse("xpath=//div[@a='b=c']") == Locator.xpath("//div[@a='b=c']")


def test_parse_bare_expression():
    assert Locator.parse("//table//tr").kind is LocatorKind.XPATH
    assert Locator.parse("./span").kind is LocatorKind.XPATH
    assert Locator.parse("(//tr)[2]").kind is LocatorKind.XPATH
    assert Locator.parse(".row > td").kind is LocatorKind.CSS


def test_serializable_form():
    locator = Locator.xpath(".//tr")
    assert locator.to_dict() == {"kind": "xpath", "value": ".//tr"}
    assert Locator.from_dict({"kind": "name", "value": "q"}) == Locator.name("q")
    assert str(locator) == "xpath=.//tr"


def test_selector_rendering():
    assert Locator.xpath("//a").selector == "xpath=//a"
    assert Locator.css("#id").selector == "css=#id"
    assert Locator.name("q").selector == 'css=[name="q"]'
    assert Locator.test_id("save").selector == "data-testid=save"


def test_xpath_expression_of_other_kinds():
    assert Locator.id("grid").xpath_expression() == "//*[@id='grid']"
    assert Locator.tag("table").xpath_expression() == "//table"


def test_empty_expression_is_rejected():
    with pytest.raises(ValueError):
        Locator.xpath("")
    with pytest.raises(TypeError):
        Locator("xpath", "//a")


def test_frame_locators():
    assert FRAMES.is_xpath
    assert indexed_frame(0) == Locator.xpath("(//iframe | //frame)[1]")
    assert indexed_frame(2).value.endswith("[3]")

import time

import pytest

from resilient_ui.framework.driver import SessionLostFault, StaleReferenceFault
from resilient_ui.framework.errors import MultipleVisibleElementsError, WaitElementTimeoutError
from resilient_ui.framework.locators import Locator

from tests.fakes import node

SAVE = Locator.id("save")
ITEM = Locator.css(".item")


@pytest.mark.P0
@pytest.mark.polling
def test_element_rendered_later_is_returned_before_timeout(session, driver, dom):
    start = time.monotonic()
    button = node("Save", SAVE, tag="button")

    def render_after_delay(_):
        if time.monotonic() - start >= 0.3 and button.parent is None:
            dom.add(button)

    driver.before_find = render_after_delay
    handle = session.poll.poll_for_one(SAVE, timeout=2)
    elapsed = time.monotonic() - start
    assert handle.remote_ref is button
    assert 0.3 <= elapsed < 2


@pytest.mark.P0
@pytest.mark.polling
def test_timeout_is_honest(session):
    start = time.monotonic()
    with pytest.raises(WaitElementTimeoutError) as error:
        session.poll.poll_for_one(Locator.id("never"), timeout=0.3)
    elapsed = time.monotonic() - start
    assert 0.3 <= elapsed < 0.3 + 0.25
    assert error.value.timeout == 0.3
    assert "id=never" in str(error.value)
    assert "0.3" in str(error.value)


@pytest.mark.polling
def test_timeout_without_failure_returns_empty_results(session):
    assert session.poll.poll_for_one(Locator.id("never"), timeout=0.05, fail=False) is None
    assert session.poll.poll_for_many(Locator.id("never"), timeout=0.05, fail=False) == []


@pytest.mark.P0
@pytest.mark.polling
def test_single_match_contract_raises_on_multiple_matches(session, dom):
    dom.add(node("first", ITEM), node("second", ITEM))
    with pytest.raises(MultipleVisibleElementsError) as error:
        session.poll.poll_for_one(ITEM, timeout=0.1)
    assert len(error.value.elements) == 2
    assert "candidate 0" in str(error.value) and "candidate 1" in str(error.value)
    assert "css=.item" in str(error.value)


@pytest.mark.polling
def test_first_match_returned_with_warning_when_not_single(session, dom, log_records):
    first = node("first", ITEM)
    dom.add(first, node("second", ITEM))
    handle = session.poll.poll_for_one(ITEM, timeout=0.1, single=False)
    assert handle.remote_ref is first
    assert any(r["level"].name == "WARNING" and "return the first" in r["message"] for r in log_records)


@pytest.mark.polling
def test_display_filter_keeps_positions_of_full_result(session, dom):
    shown = node("shown", ITEM)
    dom.add(node("hidden", ITEM, displayed=False), shown)
    found = session.poll.poll_for_many(ITEM, timeout=0.1)
    assert [h.remote_ref for h in found] == [shown]
    assert (found[0].sibling_index, found[0].sibling_count) == (1, 2)
    assert len(session.poll.poll_for_many(ITEM, timeout=0.1, displayed=False)) == 2


@pytest.mark.polling
def test_hidden_fallback(session, dom):
    dom.add(node("hidden", ITEM, displayed=False))
    assert session.poll.poll_for_many(ITEM, timeout=0, fail=False) == []
    found = session.poll.poll_for_many(ITEM, timeout=0, allow_hidden=True)
    assert [h.get_text() for h in found] == ["hidden"]


@pytest.mark.polling
def test_first_of_returns_slot_per_locator(session, dom):
    dom.add(node("error", Locator.id("error")))
    slots = session.poll.poll_for_first_of([Locator.id("ok"), Locator.id("error")], timeout=0.1)
    assert slots[0] is None
    assert slots[1].get_text() == "error"
    assert session.poll.poll_for_any([Locator.id("ok"), Locator.id("error")], timeout=0.1).remote_ref is slots[1].remote_ref


@pytest.mark.polling
def test_first_of_without_match(session):
    locators = [Locator.id("ok"), Locator.id("error")]
    assert session.poll.poll_for_first_of(locators, timeout=0.05, fail=False) == [None, None]
    assert session.poll.poll_for_any(locators, timeout=0.05, fail=False) is None
    with pytest.raises(WaitElementTimeoutError):
        session.poll.poll_for_first_of(locators, timeout=0.05)
    with pytest.raises(ValueError):
        session.poll.poll_for_first_of(locators, display_flags=[True])


@pytest.mark.polling
def test_first_of_honours_display_flags(session, dom):
    dom.add(node("spinner", Locator.id("spinner"), displayed=False))
    locators = [Locator.id("ok"), Locator.id("spinner")]
    slots = session.poll.poll_for_first_of(locators, timeout=0.1, display_flags=[True, False])
    assert slots[1] is not None


@pytest.mark.P0
@pytest.mark.polling
def test_wait_while_displayed_times_out_without_failure(session, dom):
    dom.add(node("Loading", Locator.id("spinner")))
    spinner = session.wait_for_element(Locator.id("spinner"))
    start = time.monotonic()
    assert session.poll.wait_while_displayed(spinner, timeout=0.3, fail=False) is False
    assert time.monotonic() - start >= 0.3
    with pytest.raises(WaitElementTimeoutError):
        session.poll.wait_while_displayed(spinner, timeout=0.05)


@pytest.mark.polling
def test_wait_while_displayed_succeeds_when_element_vanishes(session, dom):
    spinner_node = node("Loading", Locator.id("spinner"))
    dom.add(spinner_node)
    spinner = session.wait_for_element(Locator.id("spinner"))
    spinner_node.displayed = False
    assert spinner.wait_while_displayed(timeout=0.1)
    dom.rerender(dom.body)
    assert spinner.wait_while_displayed(timeout=0.1)


@pytest.mark.polling
def test_wait_while_locator_displayed(session, dom):
    assert session.wait_while_displayed(Locator.id("absent"), timeout=0.1)
    dom.add(node("Loading", Locator.id("spinner")))
    assert session.wait_while_displayed(Locator.id("spinner"), timeout=0.05, fail=False) is False


@pytest.mark.polling
def test_wait_while_disabled(session, dom):
    button_node = node("Next", Locator.id("next"), enabled=False)
    dom.add(button_node)
    button = session.wait_for_element(Locator.id("next"))
    assert button.wait_while_disabled(timeout=0.05, fail=False) is False
    button_node.enabled = True
    assert button.wait_while_disabled(timeout=0.05)


@pytest.mark.polling
def test_wait_for_text_prefix_match(session, dom):
    dom.add(node("Saved successfully", Locator.id("status")), node("", Locator.id("empty")))
    status = session.wait_for_element(Locator.id("status"))
    empty = session.wait_for_element(Locator.id("empty"))
    assert session.poll.wait_for_text(status, ["Error", "Saved"], timeout=0.1) == "Saved successfully"
    assert session.poll.wait_for_text(status, "", timeout=0.05, fail=False) is None
    assert session.poll.wait_for_text(empty, "", timeout=0.05) == ""


@pytest.mark.polling
def test_click_and_wait_for(session, dom):
    dialog = node("Dialog", Locator.id("dialog"))
    dom.add(node("Open", Locator.id("open"), tag="button", on_click=lambda _: dom.add(dialog)))
    opener = session.wait_for_element(Locator.id("open"))
    assert session.poll.click_and_wait_for(opener, Locator.id("dialog"), timeout=0.1).remote_ref is dialog


@pytest.mark.polling
def test_transient_faults_are_absorbed(session, driver, dom):
    dom.add(node("Save", SAVE))
    driver.inject("find_elements", StaleReferenceFault("re-rendering"))
    driver.alerts.append("Unsaved changes")
    assert session.poll.poll_for_one(SAVE, timeout=0.5).get_text() == "Save"
    assert driver.alerts == []


@pytest.mark.P0
@pytest.mark.polling
def test_unrecoverable_fault_propagates_immediately(session, driver):
    driver.inject("find_elements", SessionLostFault("connection lost"))
    start = time.monotonic()
    with pytest.raises(SessionLostFault):
        session.poll.poll_for_one(SAVE, timeout=1)
    assert time.monotonic() - start < 0.5


@pytest.mark.polling
def test_zero_timeout_checks_once(session):
    calls = []

    def check():
        calls.append(1)
        return False, None

    assert session.poll.poll(check, timeout=0, fail=False) is None
    assert len(calls) == 1

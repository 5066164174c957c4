#!/usr/bin/env python3
"""
End-to-end tests for pulse card rendering: classification, per-visualization
markup, attachments, titles and failure handling.
"""

import logging

import pytest

from pulse_render import (
    CardType,
    RenderMode,
    RenderStatus,
    render_card_outcome,
    render_options,
    render_pulse_card,
    render_pulse_card_body,
    render_pulse_card_for_display,
    render_pulse_section,
)
from pulse_render.logging import render_logger
from pulse_render.visualization.data_parser import parse_card
from pulse_render.visualization.image_bundle import EXTERNAL_LINK_IMAGE, NO_RESULTS_IMAGE

ERROR_TEXT = "An error occurred while displaying this card."

DATE = {'name': 'day', 'display_name': 'Day', 'base_type': 'type/DateTime', 'unit': 'day'}
NUMBER = {'name': 'count', 'display_name': 'Count', 'base_type': 'type/Integer'}
TEXT = {'name': 'category', 'display_name': 'Category', 'base_type': 'type/Text'}

CARD = {'id': 7, 'name': 'Orders', 'display': 'table', 'dataset_query': {}}


def payload(cols, rows, error=None):
    return {'data': {'cols': cols, 'rows': rows}, 'error': error}


@pytest.fixture
def render_records(caplog):
    """Records of the render logger, which writes through its own handler only."""
    render_logger.addHandler(caplog.handler)
    yield caplog
    render_logger.removeHandler(caplog.handler)


@pytest.fixture
def site_url(monkeypatch):
    monkeypatch.setenv('PULSE_SITE_URL', 'https://bi.example.com/')
    return 'https://bi.example.com'


def test_scalar():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[42]]))

    assert fragment.attachments is None
    assert fragment.content.tag == 'a'
    assert fragment.content.text() == "42"


def test_card_link(site_url):
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[42]]))
    assert fragment.content.get('href') == f"{site_url}/question/7"
    assert fragment.content.get('target') == '_blank'


def test_empty_attachment_mode():
    fragment = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD, payload([NUMBER], [[None]]))

    assert len(fragment.attachments) == 1
    (content_id, path), = fragment.attachments.items()
    assert path.name == NO_RESULTS_IMAGE
    img, = fragment.content.find_all('img')
    assert img.get('src') == f"cid:{content_id}"
    assert "No results" in fragment.content.text()


def test_empty_inline_mode():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], []))

    assert fragment.attachments is None
    img, = fragment.content.find_all('img')
    assert img.get('src').startswith("data:image/png;base64,")


@pytest.mark.parametrize("render_mode", [RenderMode.ATTACHMENT, RenderMode.INLINE])
def test_empty_rows_with_date_and_number_columns(render_mode):
    fragment = render_pulse_card(render_mode, "UTC", CARD, payload([DATE, NUMBER], []))

    img, = fragment.content.find_all('img')
    assert "No results" in fragment.content.text()
    if render_mode is RenderMode.ATTACHMENT:
        (content_id, path), = fragment.attachments.items()
        assert path.name == NO_RESULTS_IMAGE
        assert img.get('src') == f"cid:{content_id}"
    else:
        assert fragment.attachments is None
        assert img.get('src').startswith("data:image/png;base64,")


def test_result_error(render_records):
    fragment = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD,
                                 payload([NUMBER], [[42]], error="boom"))

    assert fragment.attachments is None
    assert fragment.content.text() == ERROR_TEXT
    assert "boom" not in fragment.content.to_html()
    assert any("boom" in record.getMessage() and record.levelno == logging.ERROR
               for record in render_records.records)


def test_render_failure_is_contained():
    """A malformed result renders the failure fragment instead of raising."""
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload([NUMBER, NUMBER], [[1, 2], [3]]))
    assert fragment.content.text() == ERROR_TEXT


def test_failed_outcome_keeps_cause():
    outcome = render_card_outcome(RenderMode.INLINE, "UTC", parse_card(CARD),
                                  payload([TEXT, NUMBER], [["a", None], ["b", 2]]))
    assert outcome.status is RenderStatus.FAILED
    assert outcome.card_type is CardType.BAR
    assert outcome.error.card_id == 7
    assert isinstance(outcome.error.__cause__, TypeError)


def test_sibling_cards_render_after_failure():
    broken = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[1]], error="boom"))
    healthy = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[1]]))

    assert broken.content.text() == ERROR_TEXT
    assert healthy.content.text() == "1"


def test_unsupported(render_records):
    card = dict(CARD, display='pin_map')
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", card, payload([NUMBER], [[1]]))

    assert "We were unable to display this card." in fragment.content.text()
    assert fragment.attachments is None
    assert not [record for record in render_records.records if record.levelno >= logging.ERROR]


def test_table_with_remapping():
    cols = [
        {'name': 'user_id', 'base_type': 'type/Integer', 'remapped_to': 'user_name'},
        {'name': 'user_name', 'display_name': 'User', 'base_type': 'type/Text', 'remapped_from': 'user_id'},
    ]
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload(cols, [[1, "Alice"], [2, "Bob"]]))

    assert [th.text() for th in fragment.content.find_all('th')] == ["USER"]
    assert [td.text() for td in fragment.content.find_all('td')] == ["Alice", "Bob"]


def test_table_truncation():
    cols = [TEXT, TEXT]
    rows = [[f"a{i}", f"b{i}"] for i in range(15)]
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload(cols, rows))

    tbody, = fragment.content.find_all('tbody')
    assert len(tbody.find_all('tr')) == 10
    assert "Showing 10 of 15 rows." in fragment.content.text()


def test_bar():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload([TEXT, NUMBER], [["a", 10], ["b", 20]]))
    styles = [div.get('style') or '' for div in fragment.content.iter('div')]

    assert any('width: 50.0%;' in s for s in styles)
    assert any('width: 100.0%;' in s for s in styles)
    assert fragment.attachments is None


def test_bar_header():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload([TEXT, NUMBER], [["a", 10], ["b", 20]]))
    assert [th.text() for th in fragment.content.find_all('th')] == ["CATEGORY", "COUNT", ""]


def test_table_column_truncation():
    cols = [dict(TEXT, name=f"c{i}", display_name=f"C{i}") for i in range(4)]
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload(cols, [["a", "b", "c", "d"]]))

    assert [th.text() for th in fragment.content.find_all('th')] == ["C0", "C1", "C2"]
    assert "Showing 3 of 4 columns." in fragment.content.text()


def sparkline_rows():
    # Newest first; rendering puts them in ascending time order
    return [["2017-01-03T00:00:00", 30], ["2017-01-02T00:00:00", 20], ["2017-01-01T00:00:00", 10]]


def test_sparkline_attachment():
    fragment = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD,
                                 payload([DATE, NUMBER], sparkline_rows()))

    assert len(fragment.attachments) == 1
    (content_id, path), = fragment.attachments.items()
    assert path.read_bytes().startswith(b"\x89PNG")
    img, = fragment.content.find_all('img')
    assert img.get('src') == f"cid:{content_id}"

    cells = [td.text() for td in fragment.content.find_all('td')]
    assert cells == ["20", "30", "Jan 2, 2017", "Jan 3, 2017"]


def test_sparkline_inline():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD,
                                 payload([DATE, NUMBER], sparkline_rows()[::-1]))

    assert fragment.attachments is None
    img, = fragment.content.find_all('img')
    assert img.get('src').startswith("data:image/png;base64,")
    assert [td.text() for td in fragment.content.find_all('td')][:2] == ["20", "30"]


def test_sparkline_constant_series():
    rows = [["2017-01-01", 5], ["2017-01-02", 5], ["2017-01-03", 5]]
    outcome = render_card_outcome(RenderMode.INLINE, "UTC", parse_card(CARD), payload([DATE, NUMBER], rows))
    assert outcome.status is RenderStatus.OK
    assert outcome.card_type is CardType.SPARKLINE


def test_render_is_deterministic():
    data = payload([DATE, NUMBER], sparkline_rows())
    first = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD, data)
    second = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD, data)

    assert first.content == second.content
    assert first.attachments.keys() == second.attachments.keys()


def test_title_off_by_default():
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[1]]))
    assert "Orders" not in fragment.content.text()


def test_title_with_button():
    card = dict(CARD, name="Orders <b>")
    with render_options(include_title=True, include_buttons=True):
        fragment = render_pulse_card(RenderMode.ATTACHMENT, "UTC", card, payload([NUMBER], [[1]]))

    assert "Orders &lt;b&gt;" in fragment.content.to_html()
    (content_id, path), = fragment.attachments.items()
    assert path.name == EXTERNAL_LINK_IMAGE
    assert fragment.content.find_all('img')[0].get('src') == f"cid:{content_id}"


def test_title_and_body_attachments_merged():
    with render_options(include_title=True, include_buttons=True):
        fragment = render_pulse_card(RenderMode.ATTACHMENT, "UTC", CARD, payload([NUMBER], []))

    names = sorted(path.name for path in fragment.attachments.values())
    assert names == sorted([EXTERNAL_LINK_IMAGE, NO_RESULTS_IMAGE])


def test_render_options_restored():
    with render_options(include_title=True):
        pass
    fragment = render_pulse_card(RenderMode.INLINE, "UTC", CARD, payload([NUMBER], [[1]]))
    assert fragment.content.text() == "1"


def test_section(site_url):
    fragment = render_pulse_section("UTC", CARD, payload([NUMBER], [[3]]))

    assert fragment.content.tag == 'div'
    link, = fragment.content.find_all('a')
    assert link.get('href') == f"{site_url}/question/7"
    assert "Orders" in fragment.content.text()
    assert fragment.attachments is None


def test_section_uses_attachments():
    fragment = render_pulse_section("UTC", CARD, payload([NUMBER], []))
    (content_id, _), = fragment.attachments.items()
    assert f"cid:{content_id}" in fragment.content.to_html()


def test_display():
    element = render_pulse_card_for_display("UTC", CARD, payload([NUMBER], []))

    assert element.tag == 'a'
    assert "cid:" not in element.to_html()
    assert "data:image/png;base64," in element.to_html()


def test_body_without_link():
    fragment = render_pulse_card_body(RenderMode.INLINE, "UTC", parse_card(CARD), payload([NUMBER], [[5]]))
    assert fragment.content.tag == 'div'
    assert fragment.content.text() == "5"


def test_invalid_card():
    with pytest.raises(ValueError):
        render_pulse_card(RenderMode.INLINE, "UTC", "not a card", payload([NUMBER], [[1]]))

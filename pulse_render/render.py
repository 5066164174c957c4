"""
Pulse card assembly

Combines the optional title, the visualization body and the link to the
card into one fragment per card. A card whose result carries an error, or
whose rendering fails, gets a fixed failure fragment instead; the error is
logged and never reaches the caller, so sibling cards always render.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from .config import card_url, default_timezone, get_render_options, render_options
from .errors import DataError, PulseRenderError, RenderError
from .logging import card_context, render_logger
from .telemetry import (
    MetricsTimer,
    add_span_attributes,
    current_span,
    record_exception,
    record_render_error,
    set_span_status,
    trace_card_render,
)
from .visualization.auto_detection import CardType, detect_pulse_card_type
from .visualization.data_parser import Card, QueryResult, column_kinds, parse_card, parse_query_result
from .visualization.formatting import Timezone
from .visualization.image_bundle import RenderMode, external_link_image_bundle, image_bundle_to_attachment
from .visualization.markup import Element, h
from .visualization.renderers import (
    RenderedFragment,
    merge_attachments,
    render_bar,
    render_empty,
    render_scalar,
    render_sparkline,
    render_table,
)
from .visualization.themes import PULSE_THEME, get_color, get_style, style


class RenderStatus(Enum):
    OK = "ok"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderOutcome:
    status: RenderStatus
    fragment: Optional[RenderedFragment] = None
    error: Optional[PulseRenderError] = None
    card_type: Optional[CardType] = None

    @classmethod
    def ok(cls, card_type: CardType, fragment: RenderedFragment) -> 'RenderOutcome':
        return cls(RenderStatus.OK, fragment=fragment, card_type=card_type)

    @classmethod
    def unsupported(cls) -> 'RenderOutcome':
        return cls(RenderStatus.UNSUPPORTED, card_type=CardType.UNSUPPORTED)

    @classmethod
    def failed(cls, error: PulseRenderError, card_type: Optional[CardType] = None) -> 'RenderOutcome':
        return cls(RenderStatus.FAILED, error=error, card_type=card_type)


Renderer = Callable[[RenderMode, Timezone, Card, QueryResult, Mapping[str, Any]], RenderedFragment]

_RENDERERS: Dict[CardType, Renderer] = {
    CardType.EMPTY: lambda mode, tz, card, result, theme: render_empty(mode, card, result, theme),
    CardType.SCALAR: lambda mode, tz, card, result, theme: render_scalar(tz, card, result, theme),
    CardType.SPARKLINE: render_sparkline,
    CardType.BAR: lambda mode, tz, card, result, theme: render_bar(tz, card, result, theme),
    CardType.TABLE: lambda mode, tz, card, result, theme: render_table(tz, card, result, theme),
}


def render_card_outcome(render_mode: RenderMode, timezone: Timezone, card: Card, result: Any,
                        theme: Mapping[str, Any] = PULSE_THEME) -> RenderOutcome:
    """
    Classify and render a card body without raising.

    Args:
        render_mode: INLINE or ATTACHMENT images
        timezone: Timezone for timestamp formatting
        card: Card descriptor
        result: QueryResult or query-layer payload

    Returns:
        RenderOutcome: OK with the fragment, UNSUPPORTED for visualizations
        with no email rendering, or FAILED with the error
    """
    card_type = None
    try:
        result = parse_query_result(result)
        if result.error:
            return RenderOutcome.failed(DataError(f"Card has errors: {result.error}", card.id))

        card_type = detect_pulse_card_type(card, result)
        kinds = ",".join(f"{name}={kind.value}" for name, kind in column_kinds(result).items())
        render_logger.debug(
            f"classified card | card:{card.id} | type:{card_type.value} | rows:{result.row_count} | columns:{kinds}"
        )
        if card_type is CardType.UNSUPPORTED:
            return RenderOutcome.unsupported()

        fragment = _RENDERERS[card_type](render_mode, timezone, card, result, theme)
        return RenderOutcome.ok(card_type, fragment)

    except Exception as e:
        error = RenderError(f"{type(e).__name__}: {e}", card.id)
        error.__cause__ = e
        return RenderOutcome.failed(error, card_type)


def _unsupported_fragment(theme: Mapping[str, Any]) -> RenderedFragment:
    return RenderedFragment(
        content=h('div', {'style': style(get_style(theme, 'font'),
                                         {'color': get_color(theme, 'unsupported'),
                                          'font-weight': 700})},
                  "We were unable to display this card.", h('br'),
                  "Please view this card online."),
    )


def _error_fragment(theme: Mapping[str, Any]) -> RenderedFragment:
    return RenderedFragment(
        content=h('div', {'style': style(get_style(theme, 'font'),
                                         {'color': get_color(theme, 'error'),
                                          'font-weight': 700,
                                          'padding': '16px'})},
                  "An error occurred while displaying this card."),
    )


def _outcome_to_fragment(card: Card, outcome: RenderOutcome,
                         theme: Mapping[str, Any]) -> RenderedFragment:
    card_type = outcome.card_type.value if outcome.card_type else "unknown"
    span = current_span()
    add_span_attributes(span, {
        "pulse.card.type": card_type,
        "pulse.render.status": outcome.status.value,
    })

    if outcome.status is RenderStatus.OK:
        return outcome.fragment

    if outcome.status is RenderStatus.UNSUPPORTED:
        return _unsupported_fragment(theme)

    error = outcome.error
    record_exception(span, error)
    set_span_status(span, False, str(error))
    render_logger.error(
        f"pulse card render error | card:{card.id} | name:{card.name[:60]} | error:{error}",
        exc_info=error.__cause__,
    )
    record_render_error(type(error).__name__, "render_pulse_card_body", card_type=card_type)
    return _error_fragment(theme)


def render_pulse_card_body(render_mode: RenderMode, timezone: Timezone, card: Card, result: Any,
                           theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    """The card's visualization, or the unsupported / failure fragment."""
    outcome = render_card_outcome(render_mode, timezone, card, result, theme)
    return _outcome_to_fragment(card, outcome, theme)


def make_title_if_needed(render_mode: RenderMode, card: Card,
                         theme: Mapping[str, Any] = PULSE_THEME) -> Optional[RenderedFragment]:
    """Title row with the card name and, with buttons enabled, an external link icon."""
    options = get_render_options()
    if not options.include_title:
        return None

    image_bundle = external_link_image_bundle(render_mode) if options.include_buttons else None

    button = None
    if image_bundle is not None:
        button = h('img', {'style': style({'width': '16px'}),
                           'width': 16,
                           'src': image_bundle.image_src})

    return RenderedFragment(
        attachments=image_bundle_to_attachment(image_bundle) if image_bundle else None,
        content=h('table', {'style': style({'margin-bottom': '8px', 'width': '100%'})},
                  h('tbody', None,
                    h('tr', None,
                      h('td', None, h('span', {'style': style(get_style(theme, 'header'))}, card.name)),
                      h('td', {'style': style({'text-align': 'right'})}, button)))),
    )


@trace_card_render()
def render_pulse_card(render_mode: RenderMode, timezone: Timezone, card: Any, result: Any,
                      theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    """
    Render a single card to markup, linked to the card.

    Args:
        render_mode: INLINE for data URI images, ATTACHMENT for cid: images
        timezone: Timezone name for timestamp formatting (None: report timezone)
        card: Card or card descriptor {id, name, display, dataset_query}
        result: QueryResult or query-layer payload {data: {cols, rows}, error}

    Returns:
        RenderedFragment whose attachments map content ids to image files

    Raises:
        ValueError: If `card` is not a card descriptor
    """
    render_mode = RenderMode(render_mode)
    card = parse_card(card)
    timezone = timezone or default_timezone()

    with card_context(card.id, card.name), MetricsTimer(render_mode.value) as timer:
        try:
            title = make_title_if_needed(render_mode, card, theme)
        except Exception as e:
            render_logger.error(f"pulse card title error | card:{card.id} | error:{e}", exc_info=e)
            title = None

        outcome = render_card_outcome(render_mode, timezone, card, result, theme)
        body = _outcome_to_fragment(card, outcome, theme)

        timer.card_type = outcome.card_type.value if outcome.card_type else "unknown"
        timer.success = outcome.status is not RenderStatus.FAILED

        return RenderedFragment(
            attachments=merge_attachments(title.attachments if title else None, body.attachments),
            content=h('a', {'href': card_url(card.id),
                            'target': '_blank',
                            'style': style(get_style(theme, 'section'),
                                           {'margin': '16px',
                                            'margin-bottom': '16px',
                                            'display': 'block',
                                            'text-decoration': 'none'})},
                      title.content if title else None,
                      body.content),
        )


def render_pulse_section(timezone: Timezone, card: Any, result: Any,
                         theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    """Render one card of a pulse email: attachment images, titled, in a bordered box."""
    with render_options(include_title=True):
        fragment = render_pulse_card(RenderMode.ATTACHMENT, timezone, card, result, theme)

    return RenderedFragment(
        attachments=fragment.attachments,
        content=h('div', {'style': style({'margin-top': '10px',
                                          'margin-bottom': '20px',
                                          'border': '1px solid #dddddd',
                                          'border-radius': '2px',
                                          'background-color': 'white',
                                          'box-shadow': '0 1px 2px rgba(0, 0, 0, .08)'})},
                  fragment.content),
    )


def render_pulse_card_for_display(timezone: Timezone, card: Any, result: Any,
                                  theme: Mapping[str, Any] = PULSE_THEME) -> Element:
    """Markup for previewing a card in a browser: inline images, no attachments."""
    return render_pulse_card(RenderMode.INLINE, timezone, card, result, theme).content


def render_pulse_card_to_png(timezone: Timezone, card: Any, result: Any, rasterizer=None,
                             width: Optional[int] = None) -> bytes:
    """Render a card as a PNG snapshot through the document rasterizer."""
    from .snapshot import CARD_WIDTH, render_html_to_png

    fragment = render_pulse_card(RenderMode.INLINE, timezone, card, result)
    return render_html_to_png(fragment, width or CARD_WIDTH, rasterizer)

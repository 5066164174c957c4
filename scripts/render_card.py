#!/usr/bin/env python3
"""
Render a card and its query result from JSON files.

Modes:
  section   pulse email section (cid: images); attachments listed on stderr
  display   browser preview HTML with inline images
  png       PNG snapshot through headless Chromium (needs the snapshot extra)

Example:
  python scripts/render_card.py --card card.json --result result.json --mode display > card.html
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pulse_render import (
    render_pulse_card_for_display,
    render_pulse_card_to_png,
    render_pulse_section,
)
from pulse_render.logging import get_logger, set_log_level

logger = get_logger('CLI')


def _load_json(path: str):
    try:
        return json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise SystemExit(f"Cannot read {path}: {e}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Render a pulse card to HTML or PNG")
    parser.add_argument('--card', required=True, help='Card descriptor JSON file')
    parser.add_argument('--result', required=True, help='Query result JSON file')
    parser.add_argument('--mode', choices=['section', 'display', 'png'], default='section',
                        help='What to render (default: section)')
    parser.add_argument('--timezone', default=None, help='Timezone for dates (default: PULSE_REPORT_TIMEZONE)')
    parser.add_argument('--output', help='Output file (default: stdout; required for png)')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

    args = parser.parse_args()

    if args.verbose:
        set_log_level(logging.DEBUG)

    card = _load_json(args.card)
    result = _load_json(args.result)

    if args.mode == 'png':
        if not args.output:
            parser.error("--output is required for png mode")
        png_bytes = render_pulse_card_to_png(args.timezone, card, result)
        Path(args.output).write_bytes(png_bytes)
        logger.info(f"wrote snapshot | path:{args.output} | bytes:{len(png_bytes)}")
        return 0

    if args.mode == 'section':
        fragment = render_pulse_section(args.timezone, card, result)
        html = fragment.content.to_html()
        for content_id, path in (fragment.attachments or {}).items():
            print(f"attachment {content_id} -> {path}", file=sys.stderr)
    else:
        html = render_pulse_card_for_display(args.timezone, card, result).to_html()

    if args.output:
        Path(args.output).write_text(html)
        logger.info(f"wrote html | path:{args.output} | chars:{len(html)}")
    else:
        print(html)
    return 0


if __name__ == "__main__":
    sys.exit(main())

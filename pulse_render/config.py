"""
Pulse renderer configuration

Handles environment variables for card links, report timezone and static
assets, plus the render options that callers can override for a single
render (title, buttons, inline image encoder).
"""

import os
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from dotenv import load_dotenv

from .visualization.utils import render_img_data_uri

# Load environment variables from .env file if present
load_dotenv()

DEFAULT_ASSETS_DIR = Path(__file__).parent / "visualization" / "resources"


def get_render_config() -> Dict[str, Any]:
    """
    Get renderer configuration from environment variables.

    Returns:
        Dictionary with configuration values
    """
    return {
        "site_url": os.getenv("PULSE_SITE_URL", "http://localhost:3000").rstrip("/"),
        "report_timezone": os.getenv("PULSE_REPORT_TIMEZONE", "UTC"),
        "assets_dir": Path(os.getenv("PULSE_ASSETS_DIR", str(DEFAULT_ASSETS_DIR))),
    }


def validate_render_config() -> Optional[str]:
    """
    Validate renderer configuration.

    Returns:
        Error message if configuration is invalid, None if valid
    """
    config = get_render_config()

    if not config["site_url"].startswith(("http://", "https://")):
        return f"Invalid PULSE_SITE_URL: {config['site_url']}. Must start with http:// or https://"

    assets_dir = config["assets_dir"]
    if not assets_dir.is_dir():
        return f"Static assets directory not found: {assets_dir}. Check PULSE_ASSETS_DIR"

    return None


def card_url(card_id: Any) -> str:
    """Canonical URL of a card in the web application."""
    return f"{get_render_config()['site_url']}/question/{card_id}"


def default_timezone() -> str:
    return get_render_config()["report_timezone"]


def asset_path(filename: str) -> Path:
    return get_render_config()["assets_dir"] / filename


@dataclass(frozen=True)
class RenderOptions:
    """Per-render knobs; override with `render_options()`."""

    include_buttons: bool = False
    include_title: bool = False
    render_img_fn: Callable[[bytes], str] = render_img_data_uri


_render_options: ContextVar[RenderOptions] = ContextVar(
    "pulse_render_options", default=RenderOptions()
)


def get_render_options() -> RenderOptions:
    return _render_options.get()


@contextmanager
def render_options(**overrides) -> Iterator[RenderOptions]:
    """
    Override render options for the enclosed block.

    Args:
        **overrides: Any RenderOptions field (include_buttons, include_title, render_img_fn)

    Yields:
        The effective RenderOptions inside the block
    """
    options = replace(_render_options.get(), **overrides)
    token = _render_options.set(options)
    try:
        yield options
    finally:
        _render_options.reset(token)

"""
Image bundles: one handle for an image whether it is inlined as a data URI
or delivered as a MIME attachment referenced by Content-ID.

A bundle is made from either a reference to existing image bytes (a Path)
or an in-memory PNG buffer. The four (render mode, source kind)
combinations are dispatched through a table.
"""

import atexit
import os
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from ..config import asset_path, get_render_options
from ..logging import image_logger
from .utils import content_id_for, content_id_reference

EXTERNAL_LINK_IMAGE = "external_link.png"
NO_RESULTS_IMAGE = "pulse_no_results@2x.png"


class RenderMode(Enum):
    INLINE = "inline"
    ATTACHMENT = "attachment"


class SourceKind(Enum):
    REFERENCE = "reference"
    BUFFER = "buffer"


ImageSource = Union[Path, bytes]


@dataclass(frozen=True)
class ImageBundle:
    render_mode: RenderMode
    image_src: str
    content_id: Optional[str] = None
    image_url: Optional[Path] = None


# Temp files holding rendered images until the mail transport has read them
_temp_files = set()
_temp_files_lock = threading.Lock()


def _cleanup_temp_files():
    with _temp_files_lock:
        for path in list(_temp_files):
            try:
                os.unlink(path)
            except OSError:
                pass
        _temp_files.clear()


atexit.register(_cleanup_temp_files)


def write_bytes_to_temp_file(image_bytes: bytes) -> Path:
    """Persist image bytes to a temp file that is deleted when the process exits."""
    fd, name = tempfile.mkstemp(prefix="pulse_image_", suffix=".png")
    with os.fdopen(fd, "wb") as f:
        f.write(image_bytes)
    with _temp_files_lock:
        _temp_files.add(name)
    image_logger.debug(f"wrote image to temp file | path:{name} | bytes:{len(image_bytes)}")
    return Path(name)


def _source_kind(source: ImageSource) -> SourceKind:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return SourceKind.BUFFER
    if isinstance(source, (str, os.PathLike)):
        return SourceKind.REFERENCE
    raise TypeError(f"Image source must be bytes or a path, got {type(source).__name__}")


def _attachment_from_reference(source: ImageSource) -> ImageBundle:
    path = Path(source)
    content_id = content_id_for(path.read_bytes())
    return ImageBundle(
        render_mode=RenderMode.ATTACHMENT,
        image_src=content_id_reference(content_id),
        content_id=content_id,
        image_url=path,
    )


def _attachment_from_buffer(source: ImageSource) -> ImageBundle:
    image_bytes = bytes(source)
    content_id = content_id_for(image_bytes)
    return ImageBundle(
        render_mode=RenderMode.ATTACHMENT,
        image_src=content_id_reference(content_id),
        content_id=content_id,
        image_url=write_bytes_to_temp_file(image_bytes),
    )


def _inline_from_reference(source: ImageSource) -> ImageBundle:
    path = Path(source)
    render_img_fn = get_render_options().render_img_fn
    return ImageBundle(
        render_mode=RenderMode.INLINE,
        image_src=render_img_fn(path.read_bytes()),
        image_url=path,
    )


def _inline_from_buffer(source: ImageSource) -> ImageBundle:
    render_img_fn = get_render_options().render_img_fn
    return ImageBundle(
        render_mode=RenderMode.INLINE,
        image_src=render_img_fn(bytes(source)),
    )


_IMAGE_BUNDLE_MAKERS: Dict[Tuple[RenderMode, SourceKind], Callable[[ImageSource], ImageBundle]] = {
    (RenderMode.ATTACHMENT, SourceKind.REFERENCE): _attachment_from_reference,
    (RenderMode.ATTACHMENT, SourceKind.BUFFER): _attachment_from_buffer,
    (RenderMode.INLINE, SourceKind.REFERENCE): _inline_from_reference,
    (RenderMode.INLINE, SourceKind.BUFFER): _inline_from_buffer,
}


def make_image_bundle(render_mode: RenderMode, source: ImageSource) -> ImageBundle:
    """
    Create an image bundle.

    Args:
        render_mode: INLINE to embed the image as a data URI, ATTACHMENT to
            reference it by Content-ID
        source: Path to existing image bytes, or PNG bytes

    Returns:
        ImageBundle; attachment bundles always carry content_id and image_url
    """
    maker = _IMAGE_BUNDLE_MAKERS[(RenderMode(render_mode), _source_kind(source))]
    return maker(source)


def image_bundle_to_attachment(bundle: ImageBundle) -> Optional[Dict[str, Path]]:
    """{content_id: image_url} for attachment bundles, None for inline ones."""
    if bundle.render_mode is RenderMode.ATTACHMENT:
        return {bundle.content_id: bundle.image_url}
    return None


class StaticImage:
    """
    A packaged image whose attachment bundle is built at most once per process.

    Inline bundles are rebuilt on every call since they depend on the
    current inline encoder.
    """

    def __init__(self, filename: str):
        self.filename = filename
        self._attachment_bundle: Optional[ImageBundle] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return asset_path(self.filename)

    def bundle(self, render_mode: RenderMode) -> ImageBundle:
        if RenderMode(render_mode) is RenderMode.INLINE:
            return make_image_bundle(RenderMode.INLINE, self.path)

        if self._attachment_bundle is None:
            with self._lock:
                if self._attachment_bundle is None:
                    self._attachment_bundle = make_image_bundle(RenderMode.ATTACHMENT, self.path)
                    image_logger.debug(
                        f"cached static image | file:{self.filename} | cid:{self._attachment_bundle.content_id}"
                    )
        return self._attachment_bundle

    def reset(self):
        """Drop the cached bundle (tests, asset directory changes)."""
        with self._lock:
            self._attachment_bundle = None


external_link_image = StaticImage(EXTERNAL_LINK_IMAGE)
no_results_image = StaticImage(NO_RESULTS_IMAGE)


def external_link_image_bundle(render_mode: RenderMode) -> ImageBundle:
    return external_link_image.bundle(render_mode)


def no_results_image_bundle(render_mode: RenderMode) -> ImageBundle:
    return no_results_image.bundle(render_mode)

#!/usr/bin/env python3
"""
Tests for image bundles: inline data URIs, Content-ID attachments and the
static image cache.
"""

import base64
import threading

import pytest

from pulse_render.config import render_options
from pulse_render.visualization.image_bundle import (
    NO_RESULTS_IMAGE,
    ImageBundle,
    RenderMode,
    external_link_image_bundle,
    image_bundle_to_attachment,
    make_image_bundle,
    no_results_image,
    no_results_image_bundle,
)
from pulse_render.visualization.utils import content_id_for, hash_bytes

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


def test_hash_bytes_matches_java_arrays_hashcode():
    assert hash_bytes(b"") == 1
    assert hash_bytes(b"\x01") == 32
    assert hash_bytes(b"\xff") == 30
    assert hash_bytes(PNG_BYTES) == hash_bytes(bytes(PNG_BYTES))


def test_content_id_format():
    content_id = content_id_for(PNG_BYTES)
    number, domain = content_id.split("@")
    assert domain == "pulse"
    assert int(number) >= 0


def test_inline_from_buffer():
    bundle = make_image_bundle(RenderMode.INLINE, PNG_BYTES)

    assert bundle.render_mode is RenderMode.INLINE
    assert bundle.image_src.startswith("data:image/png;base64,")
    assert base64.b64decode(bundle.image_src.split(",", 1)[1]) == PNG_BYTES
    assert bundle.content_id is None
    assert image_bundle_to_attachment(bundle) is None


def test_attachment_from_buffer():
    bundle = make_image_bundle(RenderMode.ATTACHMENT, PNG_BYTES)

    assert bundle.content_id == content_id_for(PNG_BYTES)
    assert bundle.image_src == f"cid:{bundle.content_id}"
    assert bundle.image_url.read_bytes() == PNG_BYTES
    assert image_bundle_to_attachment(bundle) == {bundle.content_id: bundle.image_url}


def test_attachment_from_reference(tmp_path):
    path = tmp_path / "chart.png"
    path.write_bytes(PNG_BYTES)
    bundle = make_image_bundle(RenderMode.ATTACHMENT, path)

    assert bundle == ImageBundle(
        render_mode=RenderMode.ATTACHMENT,
        image_src=f"cid:{content_id_for(PNG_BYTES)}",
        content_id=content_id_for(PNG_BYTES),
        image_url=path,
    )


def test_inline_from_reference(tmp_path):
    path = tmp_path / "chart.png"
    path.write_bytes(PNG_BYTES)
    bundle = make_image_bundle("inline", path)

    assert bundle.image_src == make_image_bundle(RenderMode.INLINE, PNG_BYTES).image_src
    assert image_bundle_to_attachment(bundle) is None


def test_same_bytes_same_content_id():
    first = make_image_bundle(RenderMode.ATTACHMENT, PNG_BYTES)
    second = make_image_bundle(RenderMode.ATTACHMENT, bytearray(PNG_BYTES))
    assert first.content_id == second.content_id


def test_bad_source():
    with pytest.raises(TypeError):
        make_image_bundle(RenderMode.INLINE, 42)


def test_inline_encoder_override():
    with render_options(render_img_fn=lambda image_bytes: f"stub:{len(image_bytes)}"):
        bundle = make_image_bundle(RenderMode.INLINE, PNG_BYTES)
    assert bundle.image_src == f"stub:{len(PNG_BYTES)}"

    assert make_image_bundle(RenderMode.INLINE, PNG_BYTES).image_src.startswith("data:")


def test_static_attachment_bundle_cached():
    no_results_image.reset()
    first = no_results_image_bundle(RenderMode.ATTACHMENT)
    second = no_results_image_bundle(RenderMode.ATTACHMENT)

    assert first is second
    assert first.image_url.name == NO_RESULTS_IMAGE
    assert first.content_id != external_link_image_bundle(RenderMode.ATTACHMENT).content_id


def test_static_inline_bundle_not_cached():
    first = no_results_image_bundle(RenderMode.INLINE)
    second = no_results_image_bundle(RenderMode.INLINE)

    assert first is not second
    assert first == second
    assert first.image_src.startswith("data:image/png;base64,")


def test_static_bundle_single_flight():
    """Concurrent first use builds and publishes a single bundle."""
    no_results_image.reset()
    barrier = threading.Barrier(8)
    bundles = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        bundle = no_results_image_bundle(RenderMode.ATTACHMENT)
        with lock:
            bundles.append(bundle)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(bundles) == 8
    assert all(bundle is bundles[0] for bundle in bundles)

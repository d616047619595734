"""Tests for the HTTP endpoints and the command line entry."""

from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from clusterseg.__main__ import main as cli_main
from clusterseg.config import Settings
from clusterseg.dependencies import get_settings
from clusterseg.main import app
from clusterseg.utils.imageio import load_tags_image
from tests.conftest import make_quadrant_image


client = TestClient(app)


def _png_b64(img: np.ndarray) -> str:
    buf = io.BytesIO()
    Image.fromarray(img).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["stages_registered"] == 8


def test_segment_quadrants():
    response = client.post("/api/segment", json={"image_b64": _png_b64(make_quadrant_image(32))})
    assert response.status_code == 200
    data = response.json()
    assert (data["width"], data["height"]) == (32, 32)
    assert data["block_superpixels"] == 64
    assert data["fine_superpixels"] == 3
    assert data["coarse_superpixels"] == 3
    assert data["final_superpixels"] == 3
    assert data["reparsed"] is True
    assert data["checksum_before"] != data["checksum_after"]
    assert len(data["stage_times_ms"]) == 8

    tags = load_tags_image(base64.b64decode(data["tags_png_b64"]))
    assert tags.shape == (32, 32)
    assert len(np.unique(tags)) == 3


def test_segment_without_identical_merge():
    response = client.post("/api/segment", json={
        "image_b64": _png_b64(make_quadrant_image(16)),
        "merge_identical": False,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["identical_merges"] == 0
    assert data["fine_superpixels"] == 16
    assert "S0.02" not in data["stage_times_ms"]


def test_segment_rejects_bad_input():
    response = client.post("/api/segment", json={"image_b64": "***"})
    assert response.status_code == 422

    garbage = base64.b64encode(b"not an image").decode("ascii")
    response = client.post("/api/segment", json={"image_b64": garbage})
    assert response.status_code == 422

    response = client.post("/api/segment", json={"image_b64": garbage, "srm_q": -1})
    assert response.status_code == 422


def test_segment_rejects_oversized_image():
    app.dependency_overrides[get_settings] = lambda: Settings(max_image_pixels=100)
    try:
        response = client.post("/api/segment", json={"image_b64": _png_b64(make_quadrant_image(16))})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 413


def _oversized_png_b64(width: int, height: int) -> str:
    # 1-bit PNGs of this size compress to a few kilobytes
    buf = io.BytesIO()
    Image.new("1", (width, height)).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def test_default_limit_rejects_large_upload_before_decoding():
    response = client.post("/api/segment", json={"image_b64": _oversized_png_b64(2048, 2048)})
    assert response.status_code == 413
    assert "limit is 1048576" in response.json()["detail"]


def test_decompression_bomb_answers_413(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    app.dependency_overrides[get_settings] = lambda: Settings(max_image_pixels=10**9)
    try:
        response = TestClient(app, raise_server_exceptions=False).post(
            "/api/segment", json={"image_b64": _oversized_png_b64(64, 64)},
        )
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 413


def test_cli_writes_tags_image(tmp_path):
    src = tmp_path / "in.png"
    out = tmp_path / "tags.png"
    Image.fromarray(make_quadrant_image(16)).save(src)

    palette = tmp_path / "palette.png"
    assert cli_main([str(src), str(out), "--palette-image", str(palette)]) == 0
    tags = load_tags_image(out)
    assert tags.shape == (16, 16)
    assert len(np.unique(tags)) == 3
    assert Image.open(palette).size == (16, 16)


def test_cli_failures(tmp_path):
    with pytest.raises(SystemExit):
        cli_main([])
    out = tmp_path / "tags.png"
    assert cli_main([str(tmp_path / "missing.png"), str(out)]) == 1
    assert not out.exists()

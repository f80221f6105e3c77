import numpy as np
import pytest

from facadestudio.controller.postprocess import (
    BloomSettings,
    PostProcessStack,
    ToneMapping,
    aces_filmic,
    linear_to_srgb,
    srgb_to_linear,
)


@pytest.fixture
def frame():
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(67, 91, 3), dtype=np.uint8)


def test_disabled_stack_returns_a_copy(frame):
    post = PostProcessStack.disabled()
    assert not post.touches_pixels
    out = post.apply(frame)
    assert not np.shares_memory(out, frame)
    np.testing.assert_array_equal(out, frame)


def test_alpha_channel_is_dropped(frame):
    rgba = np.dstack([frame, np.full(frame.shape[:2], 255, dtype=np.uint8)])
    out = PostProcessStack.disabled().apply(rgba)
    assert out.shape == frame.shape


def test_bad_shape_is_rejected():
    with pytest.raises(ValueError):
        PostProcessStack().apply(np.zeros((10, 10), dtype=np.uint8))


def test_black_stays_black():
    out = PostProcessStack().apply(np.zeros((32, 48, 3), dtype=np.uint8))
    assert out.dtype == np.uint8
    assert out.shape == (32, 48, 3)
    assert not out.any()


def test_output_shape_and_dtype(frame):
    out = PostProcessStack().apply(frame)
    assert out.shape == frame.shape
    assert out.dtype == np.uint8


def test_banding_does_not_change_result(frame):
    whole = PostProcessStack(band_rows=512).apply(frame)
    banded = PostProcessStack(band_rows=7).apply(frame)
    np.testing.assert_allclose(whole.astype(int), banded.astype(int), atol=1)


def test_bloom_brightens_around_highlights():
    img = np.zeros((64, 64, 3), dtype=np.uint8)
    img[28:36, 28:36] = 255
    no_bloom = PostProcessStack(bloom=None).apply(img)
    bloom = PostProcessStack(bloom=BloomSettings(intensity=1.0, downsample=2, radius=0.1)).apply(img)
    assert int(bloom[24, 32].sum()) > int(no_bloom[24, 32].sum())


def test_tone_mapping_only(frame):
    post = PostProcessStack(anti_aliasing=None, bloom=None, tone_mapping=ToneMapping.ACES_FILMIC)
    assert post.touches_pixels
    out = post.apply(frame)
    # ACES compresses highlights
    assert out.max() <= frame.max()


def test_configure_enables_fxaa(plotter):
    PostProcessStack().configure(plotter)
    assert plotter.anti_aliasing == ["fxaa"]


def test_configure_without_aa(plotter):
    PostProcessStack.disabled().configure(plotter)
    assert plotter.anti_aliasing == []


def test_aces_is_monotonic_and_bounded():
    x = np.linspace(0.0, 20.0, 500, dtype=np.float32)
    y = aces_filmic(x)
    assert y[0] == 0.0
    assert np.all(np.diff(y) >= 0)
    assert np.all((y >= 0.0) & (y <= 1.0))


def test_srgb_roundtrip():
    c = np.linspace(0.0, 1.0, 101, dtype=np.float32)
    np.testing.assert_allclose(linear_to_srgb(srgb_to_linear(c)), c, atol=1e-5)

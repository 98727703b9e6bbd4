import numpy as np
from PIL import Image

from toonframe.processing.masking import background_mask, mask_image, threshold_channel
from toonframe.processing.options import BackgroundConfig


def test_uniform_image_is_all_background() -> None:
    img = Image.new("RGB", (3, 3), (12, 34, 56))

    mask = background_mask(img, BackgroundConfig(1))

    assert mask.shape == (3, 3)
    assert mask.all()


def test_zero_threshold_flags_nothing() -> None:
    img = Image.new("RGB", (3, 3), (12, 34, 56))

    assert not background_mask(img, BackgroundConfig(0)).any()
    assert not background_mask(img, BackgroundConfig(-5)).any()


def test_mask_uses_top_left_pixel_and_strict_distance() -> None:
    img = Image.new("RGB", (3, 1), (0, 0, 0))
    img.putpixel((1, 0), (3, 4, 0))  # distance 5
    img.putpixel((2, 0), (200, 0, 0))

    assert background_mask(img, BackgroundConfig(5)).tolist() == [[True, False, False]]
    assert background_mask(img, BackgroundConfig(5.01)).tolist() == [[True, True, False]]


def test_mask_ignores_alpha() -> None:
    img = Image.new("RGBA", (2, 1), (10, 10, 10, 255))
    img.putpixel((1, 0), (10, 10, 10, 0))

    assert background_mask(img, BackgroundConfig(1)).tolist() == [[True, True]]


def test_empty_image_has_empty_mask() -> None:
    assert background_mask(Image.new("RGB", (0, 0)), BackgroundConfig(10)).size == 0


def test_mask_image_is_l_mode() -> None:
    image = mask_image(np.array([[True, False]]))

    assert image.mode == "L"
    assert image.size == (2, 1)
    assert list(image.tobytes()) == [255, 0]


def test_threshold_channel_is_inclusive() -> None:
    channel = Image.frombytes("L", (3, 1), bytes([127, 128, 129]))

    assert list(threshold_channel(channel, 128).tobytes()) == [0, 255, 255]

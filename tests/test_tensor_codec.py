"""Tests for the tensor codec."""

import numpy as np
import pytest
from PIL import Image

from nailongwatch.detection.tensor_codec import decode_output, encode_image
from nailongwatch.errors import InferenceFailure, InvalidImage


class TestEncodeImage:

    def test_shape_and_dtype(self):
        tensor = encode_image(Image.new("RGB", (300, 200), (10, 20, 30)))

        assert tensor.shape == (1, 3, 640, 640)
        assert tensor.dtype == np.float32

    def test_channels_are_planar_and_normalized(self):
        tensor = encode_image(Image.new("RGB", (50, 80), (255, 0, 51)))

        assert np.allclose(tensor[0, 0], 1.0)
        assert np.allclose(tensor[0, 1], 0.0)
        assert np.allclose(tensor[0, 2], 0.2)

    def test_rgba_and_palette_images_are_accepted(self):
        assert encode_image(Image.new("RGBA", (10, 10))).shape == (1, 3, 640, 640)
        assert encode_image(Image.new("P", (10, 10))).shape == (1, 3, 640, 640)

    def test_custom_size(self):
        assert encode_image(Image.new("RGB", (10, 10)), size=32).shape == (1, 3, 32, 32)

    @pytest.mark.parametrize("size", [(0, 0), (0, 10), (10, 0)])
    def test_zero_dimensions_raise_invalid_image(self, size):
        with pytest.raises(InvalidImage):
            encode_image(Image.new("RGB", size))


class TestDecodeOutput:

    @pytest.mark.parametrize("original", [(640, 640), (1000, 500), (123, 457), (1, 1)])
    def test_full_frame_box_maps_to_whole_image(self, original):
        rows = np.array([[320, 320, 640, 640, 0.9]], dtype=np.float32)

        (detection,) = decode_output(rows, original, ["nailong"])

        assert detection.box.as_xyxy() == (0.0, 0.0, float(original[0]), float(original[1]))

    def test_rescales_center_and_size(self):
        rows = np.array([[160, 320, 64, 128, 0.8]], dtype=np.float32)

        (detection,) = decode_output(rows, (1280, 320), ["nailong"])

        assert detection.box.x1 == pytest.approx(256.0)
        assert detection.box.x2 == pytest.approx(384.0)
        assert detection.box.y1 == pytest.approx(128.0)
        assert detection.box.y2 == pytest.approx(192.0)
        assert detection.label == "nailong"
        assert detection.confidence == pytest.approx(0.8)

    def test_rows_below_floor_are_dropped(self):
        rows = np.array(
            [
                [100, 100, 10, 10, 0.29],
                [100, 100, 10, 10, 0.3],
                [100, 100, 10, 10, 0.95],
            ],
            dtype=np.float32,
        )

        detections = decode_output(rows, (640, 640), ["nailong"])

        assert sorted(round(d.confidence, 2) for d in detections) == [0.3, 0.95]

    def test_custom_floor(self):
        rows = np.array([[100, 100, 10, 10, 0.5]], dtype=np.float32)
        assert decode_output(rows, (640, 640), ["nailong"], confidence_floor=0.6) == []

    def test_argmax_tie_picks_first_class(self):
        rows = np.array([[100, 100, 10, 10, 0.6, 0.6]], dtype=np.float32)

        (detection,) = decode_output(rows, (640, 640), ["nailong", "xiong"])

        assert detection.label == "nailong"

    def test_argmax_picks_highest_class(self):
        rows = np.array([[100, 100, 10, 10, 0.4, 0.7]], dtype=np.float32)

        (detection,) = decode_output(rows, (640, 640), ["nailong", "xiong"])

        assert detection.label == "xiong"
        assert detection.confidence == pytest.approx(0.7)

    def test_class_without_label_gets_generic_name(self):
        rows = np.array([[100, 100, 10, 10, 0.1, 0.9]], dtype=np.float32)

        (detection,) = decode_output(rows, (640, 640), ["nailong"])

        assert detection.label == "class_1"

    def test_negative_size_gives_degenerate_box(self):
        rows = np.array([[100, 100, -10, 20, 0.9]], dtype=np.float32)

        (detection,) = decode_output(rows, (640, 640), ["nailong"])

        assert detection.box.x1 == detection.box.x2 == pytest.approx(100.0)
        assert detection.box.area() == 0.0

    @pytest.mark.parametrize("bad_row", [
        [np.nan, 100, 10, 10, 0.9],
        [100, 100, np.inf, 10, 0.9],
        [100, -np.inf, 10, 10, 0.9],
        [100, 100, 10, 10, np.nan],
        [100, 100, 10, 10, np.inf],
    ])
    def test_non_finite_rows_are_dropped(self, bad_row):
        rows = np.array([bad_row, [200, 200, 20, 20, 0.8]], dtype=np.float32)

        (detection,) = decode_output(rows, (640, 640), ["nailong"])

        assert detection.box.as_xyxy() == (190.0, 190.0, 210.0, 210.0)
        assert detection.confidence == pytest.approx(0.8)

    def test_empty_output(self):
        assert decode_output(np.zeros((0, 5), dtype=np.float32), (640, 640), ["nailong"]) == []

    def test_rows_without_scores_raise(self):
        with pytest.raises(InferenceFailure):
            decode_output(np.zeros((3, 4), dtype=np.float32), (640, 640), ["nailong"])

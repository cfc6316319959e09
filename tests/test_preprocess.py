import gc
import unittest
import weakref
from unittest import mock

import numpy as np

from yolo_edge import preprocess
from yolo_edge.errors import AllocationError, UnsupportedPixelFormatError
from yolo_edge.model_config import ModelConfig
from yolo_edge.preprocess import FramePreprocessor, rgb_buffer
from yolo_edge.types import Frame, PixelFormat


def _random_pixels(h: int, w: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)


class TestFramePreprocessor(unittest.TestCase):
    def test_bgra_quantized_keeps_rgb_bytes(self) -> None:
        pixels = _random_pixels(640, 640)
        pre = FramePreprocessor(ModelConfig(input_width=640, input_height=640, quantized=True))
        blob = pre(Frame(pixels=pixels, pixel_format=PixelFormat.BGRA))

        self.assertEqual(blob.shape, (1, 640, 640, 3))
        self.assertEqual(blob.dtype, np.uint8)
        self.assertEqual(blob.nbytes, 640 * 640 * 3)
        self.assertTrue(np.array_equal(blob[0, :, :, 0], pixels[:, :, 2]))
        self.assertTrue(np.array_equal(blob[0, :, :, 1], pixels[:, :, 1]))
        self.assertTrue(np.array_equal(blob[0, :, :, 2], pixels[:, :, 0]))

    def test_bgra_float_is_normalized(self) -> None:
        pixels = _random_pixels(640, 640)
        pixels[0, 0, :3] = 0
        pixels[0, 1, :3] = 255
        pre = FramePreprocessor(ModelConfig(input_width=640, input_height=640, quantized=False))
        blob = pre(Frame(pixels=pixels, pixel_format=PixelFormat.BGRA))

        self.assertEqual(blob.shape, (1, 640, 640, 3))
        self.assertEqual(blob.dtype, np.float32)
        self.assertEqual(blob.size, 640 * 640 * 3)
        self.assertGreaterEqual(float(blob.min()), -1.0)
        self.assertLessEqual(float(blob.max()), 1.0)
        self.assertTrue(np.allclose(blob[0, 0, 0], -1.0))
        self.assertTrue(np.allclose(blob[0, 0, 1], 1.0))

    def test_argb_and_rgba_channel_order(self) -> None:
        pixels = np.zeros((4, 4, 4), dtype=np.uint8)
        pixels[..., 0], pixels[..., 1], pixels[..., 2], pixels[..., 3] = 10, 20, 30, 40
        pre = FramePreprocessor(ModelConfig(input_width=4, input_height=4, quantized=True))

        argb = pre(Frame(pixels=pixels, pixel_format=PixelFormat.ARGB))
        self.assertEqual(argb[0, 0, 0].tolist(), [20, 30, 40])

        rgba = pre(Frame(pixels=pixels, pixel_format=PixelFormat.RGBA))
        self.assertEqual(rgba[0, 0, 0].tolist(), [10, 20, 30])

    def test_quantized_override(self) -> None:
        pixels = _random_pixels(8, 8)
        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8, quantized=False))
        blob = pre(Frame(pixels=pixels, pixel_format=PixelFormat.RGBA), quantized=True)
        self.assertEqual(blob.dtype, np.uint8)

    def test_channels_first_layout(self) -> None:
        pixels = _random_pixels(8, 8)
        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8, quantized=True, channels_first=True))
        blob = pre(Frame(pixels=pixels, pixel_format=PixelFormat.RGBA))
        self.assertEqual(blob.shape, (1, 3, 8, 8))
        self.assertTrue(np.array_equal(blob[0, 0], pixels[:, :, 0]))

    def test_resizes_to_model_input(self) -> None:
        pixels = _random_pixels(480, 640)
        pre = FramePreprocessor(ModelConfig(input_width=320, input_height=320, quantized=True))
        blob = pre(Frame(pixels=pixels, pixel_format=PixelFormat.BGRA))
        self.assertEqual(blob.shape, (1, 320, 320, 3))

    def test_unknown_format_rejected(self) -> None:
        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8))
        with self.assertRaises(UnsupportedPixelFormatError):
            pre(Frame(pixels=_random_pixels(8, 8), pixel_format="yuv420"))

    def test_three_channel_pixels_rejected(self) -> None:
        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8))
        with self.assertRaises(UnsupportedPixelFormatError):
            pre(Frame(pixels=np.zeros((8, 8, 3), dtype=np.uint8), pixel_format=PixelFormat.BGRA))

    def test_rgb_buffer_released_on_error(self) -> None:
        refs = []
        with self.assertRaises(RuntimeError):
            with rgb_buffer(4, 4) as buf:
                self.assertEqual(buf.shape, (4, 4, 3))
                refs.append(weakref.ref(buf))
                del buf
                raise RuntimeError("boom")
        gc.collect()
        self.assertIsNone(refs[0]())

    def test_out_of_memory_for_scratch_buffer(self) -> None:
        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8))
        with mock.patch.object(preprocess.np, "empty", side_effect=MemoryError):
            with self.assertRaises(AllocationError):
                pre(Frame(pixels=_random_pixels(8, 8), pixel_format=PixelFormat.RGBA))

    def test_out_of_memory_for_float_blob(self) -> None:
        real_empty = np.empty

        def empty(shape, dtype=float, **kwargs):
            if np.dtype(dtype) == np.float32:
                raise MemoryError
            return real_empty(shape, dtype=dtype, **kwargs)

        pre = FramePreprocessor(ModelConfig(input_width=8, input_height=8, quantized=False))
        with mock.patch.object(preprocess.np, "empty", side_effect=empty):
            with self.assertRaises(AllocationError) as ctx:
                pre(Frame(pixels=_random_pixels(8, 8), pixel_format=PixelFormat.RGBA))
        self.assertEqual(ctx.exception.stage, "allocate")


class TestPixelFormat(unittest.TestCase):
    def test_parse(self) -> None:
        self.assertIs(PixelFormat.parse("BGRA"), PixelFormat.BGRA)
        self.assertIs(PixelFormat.parse(PixelFormat.ARGB), PixelFormat.ARGB)
        with self.assertRaises(UnsupportedPixelFormatError):
            PixelFormat.parse("nv12")


if __name__ == "__main__":
    unittest.main()

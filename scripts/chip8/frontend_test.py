import os
import unittest
from unittest import mock

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")     # no window needed
import pygame

from chip8.__main__ import KEY_MAPPINGS, Screen, caption, get_args
from chip8.devices import DisplayBus, Key, Pixel
from chip8.specs import DISPLAY_HEIGHT, DISPLAY_WIDTH


class TestScreen(unittest.TestCase):
    def setUp(self):
        pygame.display.init()
        self.bus = DisplayBus()
        self.screen = Screen(self.bus, s=1)

    def tearDown(self):
        pygame.quit()

    def test_starts_blank(self):
        self.assertEqual(self.screen.buffer, [0] * DISPLAY_WIDTH * DISPLAY_HEIGHT)

    def test_flush_applies_the_batches(self):
        self.bus.send([Pixel(0, 0, 1), Pixel(63, 31, 1)])
        self.bus.send([Pixel(0, 0, 0)])
        self.screen.flush()
        self.assertEqual(self.screen.buffer[0], 0)
        self.assertEqual(self.screen.buffer[31 * DISPLAY_WIDTH + 63], 1)
        self.assertIsNone(self.bus.receive())

    def test_a_clear_only_repaints_the_pixels_that_were_on(self):
        self.bus.send([Pixel(1, 2, 1), Pixel(5, 5, 1)])
        self.screen.flush()
        self.bus.send([Pixel(x, y, 0) for y in range(DISPLAY_HEIGHT) for x in range(DISPLAY_WIDTH)])
        with mock.patch.object(self.screen, "write_pixel", wraps=self.screen.write_pixel) as write_pixel:
            self.screen.flush()
        self.assertEqual(write_pixel.call_count, 2)
        self.assertFalse(any(self.screen.buffer))


class TestFrontend(unittest.TestCase):
    def test_caption_shows_the_beep(self):
        self.assertEqual(caption("PONG", True), "PONG - BEEP!")
        self.assertEqual(caption("PONG", False), "PONG")

    def test_every_key_is_mapped(self):
        self.assertEqual(sorted(KEY_MAPPINGS.values()), list(Key))

    def test_args(self):
        args = get_args(["-f", "rom.ch8", "--hz", "500", "--timer-ratio", "10"])
        self.assertEqual(args.file, "rom.ch8")
        self.assertEqual(args.hz, 500)
        self.assertEqual(args.timer_ratio, 10)
        self.assertEqual(args.scale, 15)


if __name__ == "__main__":
    unittest.main()

import threading
import time
import unittest

from chip8.devices import Clock, DisplayBus, Key, Keypad, Pixel
from chip8.errors import ClockStoppedError, InvalidKeyError


class TestClock(unittest.TestCase):
    def test_the_clock_ticks(self):
        clock = Clock(hz=1000)
        clock.start()
        try:
            deadline = time.monotonic() + 2
            while not clock.poll():
                self.assertLess(time.monotonic(), deadline, "the clock never ticked")
                time.sleep(0.001)
        finally:
            clock.stop()

    def test_pending_ticks_count_as_one(self):
        clock = Clock(hz=1000)
        for _ in range(5):
            clock.ticks.put(object())
        self.assertTrue(clock.poll())
        self.assertFalse(clock.poll())

    def test_a_clock_never_started_is_not_dead(self):
        self.assertFalse(Clock().poll())

    def test_a_dead_clock_is_fatal(self):
        clock = Clock(hz=1000)
        clock.start()
        clock.stop()
        while not clock.ticks.empty():      # drop the ticks sent before it died
            clock.ticks.get_nowait()
        with self.assertRaises(ClockStoppedError):
            clock.poll()

    def test_stop_terminates_the_thread(self):
        clock = Clock(hz=100)
        clock.start()
        clock.stop()
        self.assertFalse(clock.is_alive())

    def test_rejects_bad_frequency(self):
        with self.assertRaises(ValueError):
            Clock(hz=0)


class TestDisplayBus(unittest.TestCase):
    def test_nothing_to_receive(self):
        bus = DisplayBus()
        self.assertIsNone(bus.receive())
        self.assertEqual(bus.drain(), [])

    def test_batches_keep_their_order(self):
        bus = DisplayBus()
        bus.send([Pixel(0, 0, 1)])
        bus.send([Pixel(1, 0, 1), Pixel(2, 0, 0)])
        self.assertEqual(bus.drain(), [(Pixel(0, 0, 1),), (Pixel(1, 0, 1), Pixel(2, 0, 0))])
        self.assertEqual(bus.drain(), [])

    def test_sent_batches_are_immutable(self):
        bus = DisplayBus()
        pixels = [Pixel(0, 0, 1)]
        bus.send(pixels)
        pixels.append(Pixel(1, 1, 1))
        self.assertEqual(bus.receive(), (Pixel(0, 0, 1),))


class TestKeypad(unittest.TestCase):
    def test_sets_a_key(self):
        keypad = Keypad()
        keypad.press(Key.KA)
        self.assertEqual(keypad[0xA], 1)
        self.assertTrue(keypad.is_pressed(0xA))

    def test_sets_a_key_more_than_once(self):
        keypad = Keypad()
        keypad.press(Key.KA)
        keypad.press(Key.KA)
        self.assertEqual(keypad[0xA], 2)

    def test_consume(self):
        keypad = Keypad()
        keypad.press(3)
        self.assertTrue(keypad.consume(3))
        self.assertFalse(keypad.consume(3))
        self.assertEqual(keypad[3], 0)

    def test_take_first_returns_the_lowest_key(self):
        keypad = Keypad()
        keypad.press(Key.KF)
        keypad.press(Key.K2)
        self.assertEqual(keypad.take_first(), 0x2)
        self.assertEqual(keypad.take_first(), 0xF)
        self.assertIsNone(keypad.take_first())
        self.assertTrue(keypad.untouched())

    def test_invalid_key(self):
        keypad = Keypad()
        with self.assertRaises(InvalidKeyError):
            keypad.press(0x10)
        with self.assertRaises(InvalidKeyError):
            keypad.consume(0x10)

    def test_concurrent_presses_are_not_lost(self):
        keypad = Keypad()

        def press():
            for _ in range(1000):
                keypad.press(Key.K1)

        threads = [threading.Thread(target=press) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(keypad[1], 4000)


if __name__ == "__main__":
    unittest.main()

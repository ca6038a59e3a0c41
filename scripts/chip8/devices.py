"""The three surfaces between the engine and the outside world.

    Clock      - ticks at a fixed rate on its own thread, the engine polls it
    DisplayBus - pixel batches flowing from the engine to whoever draws them
    Keypad     - key presses flowing from the host input to the engine
"""

import logging
import queue
import threading
from collections import namedtuple
from enum import IntEnum

from chip8.errors import ClockStoppedError, InvalidKeyError
from chip8.specs import CLOCK_HZ, KEYPAD_SIZE

logger = logging.getLogger(__name__)


# ******************** CLOCK
TICK = object()


class Clock(threading.Thread):
    """emits a tick every 1/hz seconds until stopped"""

    def __init__(self, hz=CLOCK_HZ):
        super().__init__(name="chip8-clock", daemon=True)
        if hz <= 0:
            raise ValueError(f"The clock frequency must be positive, got {hz}")
        self.hz = hz
        self.interval = 1.0 / hz
        self.ticks = queue.SimpleQueue()
        self._stopped = threading.Event()

    def run(self):
        logger.info("Clock started at %s Hz", self.hz)
        while not self._stopped.wait(self.interval):
            self.ticks.put(TICK)
        logger.info("Clock stopped")

    def poll(self):
        """
        return True if at least one tick arrived since the last poll, without blocking
        ticks piling up while nobody polls count as one, there's no catch-up
        """
        ticked = False
        while True:
            try:
                self.ticks.get_nowait()
            except queue.Empty:
                break
            ticked = True
        if not ticked and self.ident is not None and not self.is_alive():
            raise ClockStoppedError("The clock died!")
        return ticked

    def stop(self):
        self._stopped.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join()


# ******************** DISPLAY
Pixel = namedtuple('Pixel', 'x y value')


class DisplayBus:
    """unbounded one-way channel of pixel batches, sending never blocks"""

    def __init__(self):
        self.port = queue.SimpleQueue()

    def send(self, pixels):
        self.port.put(tuple(pixels))

    def receive(self):
        """return the oldest pending batch, None if there is nothing to draw"""
        try:
            return self.port.get_nowait()
        except queue.Empty:
            return None

    def drain(self):
        """return every pending batch, oldest first"""
        batches = []
        while True:
            batch = self.receive()
            if batch is None:
                return batches
            batches.append(batch)


# ******************** KEYPAD
class Key(IntEnum):
    K0 = 0x0
    K1 = 0x1
    K2 = 0x2
    K3 = 0x3
    K4 = 0x4
    K5 = 0x5
    K6 = 0x6
    K7 = 0x7
    K8 = 0x8
    K9 = 0x9
    KA = 0xA
    KB = 0xB
    KC = 0xC
    KD = 0xD
    KE = 0xE
    KF = 0xF


class Keypad:
    """
    one press counter per key
    the host input increments it, the engine decrements it each time an
    instruction observes the press, so a single press is seen only once
    """

    def __init__(self, size=KEYPAD_SIZE):
        self._counters = [0] * size
        self._lock = threading.Lock()

    def __getitem__(self, key):
        return self._counters[self._index(key)]

    def __repr__(self):
        return f"Keypad({self.counters()})"

    def _index(self, key):
        key = int(key)
        if not 0 <= key < len(self._counters):
            raise InvalidKeyError(key)
        return key

    def press(self, key):
        key = self._index(key)
        with self._lock:
            self._counters[key] += 1
        logger.debug("Key %X pressed", key)

    def is_pressed(self, key):
        return self[key] > 0

    def consume(self, key):
        """use up one press of key, return False if it wasn't pressed"""
        key = self._index(key)
        with self._lock:
            if self._counters[key] > 0:
                self._counters[key] -= 1
                return True
        return False

    def take_first(self):
        """use up one press of the lowest pressed key and return it, None if no key is pressed"""
        with self._lock:
            for key, count in enumerate(self._counters):
                if count > 0:
                    self._counters[key] -= 1
                    return key
        return None

    def untouched(self):
        return not any(self.counters())

    def counters(self):
        with self._lock:
            return list(self._counters)

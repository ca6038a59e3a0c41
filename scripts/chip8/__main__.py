"""pygame front-end: window, keyboard and the loop tying them to the engine thread.

    python -m chip8 -f roms/IBM.ch8
"""

import argparse
import logging
import sys

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
)

from chip8.devices import DisplayBus, Key
from chip8.errors import Chip8Error
from chip8.specs import CLOCK_HZ, DEBUG, DISPLAY_HEIGHT, DISPLAY_WIDTH, TIMER_RATIO
from chip8.vm import Chip8, EngineThread

logger = logging.getLogger("chip8")

KEY_MAPPINGS = {
    K_0: Key.K0,
    K_1: Key.K1,
    K_2: Key.K2,
    K_3: Key.K3,
    K_4: Key.K4,
    K_5: Key.K5,
    K_6: Key.K6,
    K_7: Key.K7,
    K_8: Key.K8,
    K_9: Key.K9,
    K_a: Key.KA,
    K_b: Key.KB,
    K_c: Key.KC,
    K_d: Key.KD,
    K_e: Key.KE,
    K_f: Key.KF,
}

SCALE = 15
FPS = 60
BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)


def get_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8", description="CHIP-8 interpreter")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--hz", type=int, default=CLOCK_HZ, help="clock ticks (instructions) per second")
    parser.add_argument("--timer-ratio", type=int, default=TIMER_RATIO,
                        help="ticks between two delay/sound timer decrements")
    parser.add_argument("--scale", type=int, default=SCALE, help="size in pixels of a CHIP-8 pixel")
    return parser.parse_args(argv)


# ******************** I/O SECTION
class Screen:
    """draws the pixel batches coming from the display bus"""

    def __init__(self, bus, w=DISPLAY_WIDTH, h=DISPLAY_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.bus = bus
        self.w, self.h, self.scale = w, h, s
        self.background = bg_color
        self.foreground = fg_color
        self.buffer = [0] * h * w
        self.surface = pygame.display.set_mode((w * self.scale, h * self.scale))
        self.surface.fill(self.background)

    def write_pixel(self, x, y, value):
        self.buffer[y * self.w + x] = value
        pygame.draw.rect(
            self.surface,
            self.background if value == 0 else self.foreground,
            (x * self.scale, y * self.scale, self.scale, self.scale)
        )

    def flush(self):
        """apply every pending batch, refresh the window only if something changed"""
        batches = self.bus.drain()
        for pixels in batches:
            for pixel in pixels:
                # a clear resends every pixel, only repaint the ones that were ON
                if self.buffer[pixel.y * self.w + pixel.x] != pixel.value:
                    self.write_pixel(pixel.x, pixel.y, pixel.value)
        if batches:
            pygame.display.flip()


def caption(title, sound_on):
    return f"{title} - BEEP!" if sound_on else title


# ******************** ENTRY POINT SECTION
def main(argv=None):
    args = get_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.INFO,
        format="%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s",
    )
    # CPU
    bus = DisplayBus()
    chip = Chip8(display=bus, timer_ratio=args.timer_ratio)
    try:
        chip.load_rom_file(args.file)
    except (OSError, Chip8Error) as err:
        sys.exit(f"Can't load {args.file}: {err}")
    # pygame initialization
    pygame.init()
    clock = pygame.time.Clock()
    title = os.path.basename(args.file)
    pygame.display.set_caption(title)
    beeping = False
    screen = Screen(bus, s=args.scale)
    chip.init_clock(args.hz)
    engine = EngineThread(chip)
    engine.start()
    logger.info("Running %s at %d Hz", args.file, args.hz)
    # emulation loop
    run = True
    try:
        while run:
            clock.tick(FPS)
            # loop throught the event queue
            for event in pygame.event.get():
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        run = False
                    elif event.key in KEY_MAPPINGS:
                        chip.press(KEY_MAPPINGS[event.key])     # register keypress
                elif event.type == pygame.QUIT:
                    run = False
            screen.flush()
            if chip.sound_on != beeping:
                beeping = chip.sound_on
                pygame.display.set_caption(caption(title, beeping))
            if not engine.is_alive():
                run = False
    finally:
        engine.stop()
        pygame.quit()
    if engine.error is not None:
        sys.exit(f"********** THE EMULATOR CRASHED: {engine.error}\n{chip}")


if __name__ == "__main__":
    main()

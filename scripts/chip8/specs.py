# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html

import os


# ******************** MEMORY LAYOUT
RAM_SIZE = 4096
GENERAL_REGISTERS_SIZE = 16
STACK_SIZE = 16
KEYPAD_SIZE = 16

FONTS_ADDR = 0x000
FONT_HEIGHT = 5
FONTS = (0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
         0x20, 0x60, 0x20, 0x20, 0x70,  # 1
         0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
         0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
         0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
         0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
         0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
         0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
         0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
         0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
         0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
         0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
         0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
         0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
         0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
         0xF0, 0x80, 0xF0, 0x80, 0x80)  # F
FONTS_SIZE = len(FONTS)

PROGRAM_START = 0x200
MAX_ROM_SIZE = RAM_SIZE - PROGRAM_START


# ******************** DISPLAY
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
DISPLAY_PIXELS = DISPLAY_WIDTH * DISPLAY_HEIGHT


# ******************** TIMING
CLOCK_HZ = 600      # one fetch/decode/execute cycle per tick
TIMER_RATIO = 1     # ticks between two delay/sound timer decrements


# ******************** ENVIRONMENT
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False

"""CHIP-8 virtual machine: decoder, execution engine and the devices around it."""

from chip8.errors import (
    Chip8Error,
    ClockStoppedError,
    InvalidKeyError,
    MemoryAccessError,
    RomTooLargeError,
    StackError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8.devices import Clock, DisplayBus, Key, Keypad, Pixel
from chip8.opcodes import Instruction, Op, Opcode, decode, disassemble
from chip8.vm import Chip8, EngineThread, Next

__all__ = [
    "Chip8", "EngineThread", "Next",
    "Instruction", "Op", "Opcode", "decode", "disassemble",
    "Clock", "DisplayBus", "Key", "Keypad", "Pixel",
    "Chip8Error", "ClockStoppedError", "InvalidKeyError", "MemoryAccessError",
    "RomTooLargeError", "StackError", "StackOverflowError", "StackUnderflowError",
]

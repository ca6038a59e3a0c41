"""Exceptions raised by the CHIP-8 machine.

Everything here is fatal for the running program: once the stack or memory
is in an impossible state there is no sensible way to continue. Unknown
opcodes are *not* errors, the engine logs and skips them.
"""


class Chip8Error(Exception):
    """base class, carries the pc/opcode of the failing instruction once known"""

    def __init__(self, message, pc=None, opcode=None):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.opcode = opcode

    def __str__(self):
        where = []
        if self.pc is not None:
            where.append(f"pc=0x{self.pc:04x}")
        if self.opcode is not None:
            where.append(f"opcode=0x{self.opcode:04x}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class StackError(Chip8Error):
    pass


class StackOverflowError(StackError):
    pass


class StackUnderflowError(StackError):
    pass


class MemoryAccessError(Chip8Error):
    def __init__(self, address, message=None, **kwargs):
        super().__init__(message or f"Memory access out of range at 0x{address:04x}", **kwargs)
        self.address = address


class InvalidKeyError(Chip8Error):
    def __init__(self, key, **kwargs):
        super().__init__(f"There is no key 0x{key:x} on the CHIP-8 keypad", **kwargs)
        self.key = key


class ClockStoppedError(Chip8Error):
    """the timing source died, time does not advance anymore"""


class RomTooLargeError(Chip8Error):
    def __init__(self, size, limit):
        super().__init__(f"The ROM is {size} bytes long, at most {limit} bytes fit in memory")
        self.size = size
        self.limit = limit

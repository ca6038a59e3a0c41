import logging

from chip8.errors import MemoryAccessError, RomTooLargeError, StackOverflowError, StackUnderflowError
from chip8.specs import FONTS, FONTS_ADDR, MAX_ROM_SIZE, PROGRAM_START, RAM_SIZE, STACK_SIZE

logger = logging.getLogger(__name__)


# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self, size=STACK_SIZE):
        self.addr_list = []
        self.size = size

    def __len__(self):
        return len(self.addr_list)

    def __repr__(self):
        return f"Stack({[hex(a) for a in self.addr_list]})"

    @property
    def sp(self):
        """the stack pointer, i.e. how many return addresses are stored"""
        return len(self.addr_list)

    def push(self, address):
        if len(self.addr_list) >= self.size:
            raise StackOverflowError(f"The CHIP-8 stack can contain at most {self.size} addresses. Limit exceeded")
        self.addr_list.append(address)

    def pop(self):
        if not self.addr_list:
            raise StackUnderflowError("Return with an empty CHIP-8 stack")
        return self.addr_list.pop()


# ********** WRAPS A BYTEARRAY TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    def __init__(self, size=RAM_SIZE):
        self.inner = bytearray(size)
        self.inner[FONTS_ADDR:FONTS_ADDR+len(FONTS)] = bytes(FONTS)

    def __len__(self):
        return len(self.inner)

    def _check(self, key):
        """raise if any address touched by key falls outside the memory"""
        if isinstance(key, slice):
            if key.step not in (None, 1):
                raise ValueError("Memory slices must be contiguous")
            start = 0 if key.start is None else key.start
            stop = len(self.inner) if key.stop is None else key.stop
            if start < 0:
                raise MemoryAccessError(start)
            if stop > len(self.inner):
                raise MemoryAccessError(stop - 1)
        elif not 0 <= key < len(self.inner):
            raise MemoryAccessError(key)

    def __setitem__(self, key, value):
        self._check(key)
        if isinstance(key, slice) and len(value) != len(range(*key.indices(len(self.inner)))):
            raise ValueError("Memory slice assignments can't change the memory size")
        self.inner[key] = value

    def __getitem__(self, key):
        self._check(key)
        return self.inner[key]

    def word(self, address):
        """read the big-endian 16 bit word starting at address"""
        return self[address] << 8 | self[address + 1]

    def load_rom(self, rom):
        """copy rom verbatim at the program start address"""
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(rom), MAX_ROM_SIZE)
        self.inner[PROGRAM_START:PROGRAM_START+len(rom)] = bytes(rom)
        logger.info("Loaded %d bytes of ROM at 0x%03x", len(rom), PROGRAM_START)

    def load_rom_file(self, path):
        """load ROM file from user specified path"""
        with open(path, mode='rb') as f:
            rom = f.read()
        self.load_rom(rom)
        logger.info("The ROM at path %s has been loaded successfully", path)

"""Opcode decoding.

A CHIP-8 instruction is a 16-bit big-endian word. Depending on the instruction
a few fixed fields of that word are meaningful:

    nnn or address - the lowest 12 bits
    x              - the lower 4 bits of the high byte (a register)
    y              - the upper 4 bits of the low byte (a register)
    kk or byte     - the lowest 8 bits
    n or nibble    - the lowest 4 bits

decode() never touches any machine state, it only turns a word into an
Instruction (or None when the word is not a CHIP-8 instruction).
"""

from collections import namedtuple
from enum import Enum


class Opcode(namedtuple('Opcode', 'word group address x y byte nibble')):
    __slots__ = ()

    @classmethod
    def parse(cls, word):
        if not 0 <= word <= 0xFFFF:
            raise ValueError(f"An opcode is a 16 bit word, got {word!r}")
        return cls(
            word=word,
            group=(word & 0xF000) >> 12,
            address=word & 0x0FFF,
            x=(word & 0x0F00) >> 8,
            y=(word & 0x00F0) >> 4,
            byte=word & 0x00FF,
            nibble=word & 0x000F,
        )

    def __str__(self):
        return f"0x{self.word:04x}"


class Op(Enum):
    """the 35 CHIP-8 instructions, valued with their assembly template"""
    SYS = "SYS 0x{address:03x}"
    CLS = "CLS"
    RET = "RET"
    JP = "JP 0x{address:03x}"
    CALL = "CALL 0x{address:03x}"
    SE_BYTE = "SE V{x:X}, 0x{byte:02x}"
    SNE_BYTE = "SNE V{x:X}, 0x{byte:02x}"
    SE = "SE V{x:X}, V{y:X}"
    SNE = "SNE V{x:X}, V{y:X}"
    LD_BYTE = "LD V{x:X}, 0x{byte:02x}"
    ADD_BYTE = "ADD V{x:X}, 0x{byte:02x}"
    LD = "LD V{x:X}, V{y:X}"
    OR = "OR V{x:X}, V{y:X}"
    AND = "AND V{x:X}, V{y:X}"
    XOR = "XOR V{x:X}, V{y:X}"
    ADD = "ADD V{x:X}, V{y:X}"
    SUB = "SUB V{x:X}, V{y:X}"
    SHR = "SHR V{x:X}, V{y:X}"
    SUBN = "SUBN V{x:X}, V{y:X}"
    SHL = "SHL V{x:X}, V{y:X}"
    LD_I = "LD I, 0x{address:03x}"
    JP_V0 = "JP V0, 0x{address:03x}"
    RND = "RND V{x:X}, 0x{byte:02x}"
    DRW = "DRW V{x:X}, V{y:X}, {nibble}"
    SKP = "SKP V{x:X}"
    SKNP = "SKNP V{x:X}"
    LD_VX_DT = "LD V{x:X}, DT"
    LD_VX_K = "LD V{x:X}, K"
    LD_DT = "LD DT, V{x:X}"
    LD_ST = "LD ST, V{x:X}"
    ADD_I = "ADD I, V{x:X}"
    LD_F = "LD F, V{x:X}"
    LD_B = "LD B, V{x:X}"
    LD_STORE = "LD [I], V{x:X}"
    LD_READ = "LD V{x:X}, [I]"


class Instruction(namedtuple('Instruction', 'op opcode')):
    __slots__ = ()

    def __str__(self):
        return disassemble(self)


# full word matches, checked before anything else since they alias group 0x0
WORDS = {
    0x00E0: Op.CLS,
    0x00EE: Op.RET,
}

# instructions fully identified by their group
GROUPS = {
    0x0: Op.SYS,
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x5: Op.SE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0x9: Op.SNE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# groups needing a second look, keyed by (group, discriminant)
ALU = {
    0x0: Op.LD,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

KEYS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

MISC = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT,
    0x18: Op.LD_ST,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_STORE,
    0x65: Op.LD_READ,
}


def decode(word):
    """return the Instruction encoded by word, None if it isn't a CHIP-8 instruction"""
    opcode = Opcode.parse(word)
    op = WORDS.get(word)
    if op is None:
        if opcode.group in GROUPS:
            op = GROUPS[opcode.group]
        elif opcode.group == 0x8:
            op = ALU.get(opcode.nibble)
        elif opcode.group == 0xE:
            op = KEYS.get(opcode.byte)
        elif opcode.group == 0xF:
            op = MISC.get(opcode.byte)
    if op is None:
        return None
    return Instruction(op, opcode)


def disassemble(instruction):
    return instruction.op.value.format(**instruction.opcode._asdict())

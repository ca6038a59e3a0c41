import logging
import random
import threading
from enum import Enum
from functools import wraps

from chip8.devices import Clock, Keypad, Pixel
from chip8.errors import Chip8Error, MemoryAccessError
from chip8.memory import Memory, Stack
from chip8.opcodes import Op, decode
from chip8.specs import (
    CLOCK_HZ, DISPLAY_HEIGHT, DISPLAY_PIXELS, DISPLAY_WIDTH, FONT_HEIGHT, FONTS_ADDR,
    GENERAL_REGISTERS_SIZE, PROGRAM_START, TIMER_RATIO,
)

logger = logging.getLogger(__name__)


# ******************** UTILITIES SECTION
def asm(op):
    """decorator to log the ASM of the instruction being executed"""
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(self, opcode):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("mem_addr: 0x%04x    instruction: %s",
                             self.pc, op.value.format(**opcode._asdict()))
            return fn(self, opcode)
        return wrapper_fn
    return decorator


class Next(Enum):
    """what happens to the program counter once an instruction is done"""
    ADVANCE = "advance"     # go to the following instruction
    SKIP = "skip"           # jump over the following instruction
    JUMP = "jump"           # pc has been set by the instruction itself
    STALL = "stall"         # stay on the same instruction and retry it next cycle

    @property
    def steps(self):
        return {Next.ADVANCE: 1, Next.SKIP: 2}.get(self, 0)


# ******************** CPU SECTION
class Chip8:
    def __init__(self, display=None, clock=None, keypad=None, rng=random, timer_ratio=TIMER_RATIO):
        if timer_ratio < 1:
            raise ValueError(f"timer_ratio must be at least 1, got {timer_ratio}")
        logger.info("Booting VM")
        self.mem = Memory()             # fonts are loaded here
        self.stack = Stack()
        self.v_regs = bytearray(GENERAL_REGISTERS_SIZE)
        self.gfx = bytearray(DISPLAY_PIXELS)
        self.keypad = keypad if keypad is not None else Keypad()
        self.pc = PROGRAM_START
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.display_bus = display
        self.clock = clock
        self.rng = rng
        self.timer_ratio = timer_ratio
        self.ticks = 0
        self.instructions = {
            Op.SYS: self._sys,
            Op.CLS: self._clear_screen,
            Op.RET: self._return,
            Op.JP: self._jump,
            Op.CALL: self._call_addr,
            Op.SE_BYTE: self._skip_if_eq,
            Op.SNE_BYTE: self._skip_if_not_eq,
            Op.SE: self._skip_if_eq_regs,
            Op.SNE: self._skip_if_not_eq_regs,
            Op.LD_BYTE: self._set_vk,
            Op.ADD_BYTE: self._add_to_vk,
            Op.LD: self._set_vx_to_vy,
            Op.OR: self._set_vx_or_vy,
            Op.AND: self._set_vx_and_vy,
            Op.XOR: self._set_vx_xor_vy,
            Op.ADD: self._add_vx_vy,
            Op.SUB: self._sub_vx_vy,
            Op.SHR: self._shr,
            Op.SUBN: self._subn_vx_vy,
            Op.SHL: self._shl,
            Op.LD_I: self._set_idx,
            Op.JP_V0: self._jump_plus,
            Op.RND: self._random_byte_and,
            Op.DRW: self._to_screen,
            Op.SKP: self._skip_if_pressed,
            Op.SKNP: self._skip_if_not_pressed,
            Op.LD_VX_DT: self._set_vx_dt,
            Op.LD_VX_K: self._wait_keypress,
            Op.LD_DT: self._set_dt_vx,
            Op.LD_ST: self._set_st,
            Op.ADD_I: self._add_to_idx,
            Op.LD_F: self._select_char,
            Op.LD_B: self._bcd_repr,
            Op.LD_STORE: self._store_vregs,
            Op.LD_READ: self._load_vregs,
        }

    def __str__(self):
        state = self.dump()
        registers = " ".join(f"V{i:X}:{v:02x}" for i, v in enumerate(state["v_regs"]))
        return (f"PC_REGISTER:0x{state['pc']:04x} | IDX_REGISTER:0x{state['idx']:04x} | DT:{state['dt']} | ST:{state['st']}\n"
                f"VARIABLE_REGISTERS: {registers}\n"
                f"STACK:{self.stack} | SP:{state['sp']}\n"
                f"KEYPAD:{state['keypad']}")

    def dump(self):
        """snapshot of the registers, used in crash diagnostics"""
        return {
            "pc": self.pc,
            "idx": self.idx,
            "sp": self.stack.sp,
            "dt": self.dt,
            "st": self.st,
            "v_regs": list(self.v_regs),
            "stack": list(self.stack.addr_list),
            "keypad": self.keypad.counters(),
        }

    @property
    def sound_on(self):
        return self.st > 0

    # ********** WIRING
    def load_rom(self, rom):
        self.mem.load_rom(rom)
        return self

    def load_rom_file(self, path):
        self.mem.load_rom_file(path)
        return self

    def set_display_bus(self, bus):
        self.display_bus = bus
        return self

    def init_clock(self, hz=CLOCK_HZ):
        self.clock = Clock(hz)
        self.clock.start()
        return self

    def shutdown(self):
        """stop the clock so no timer thread outlives the machine"""
        if self.clock is not None:
            self.clock.stop()

    def press(self, key):
        self.keypad.press(key)

    def _send(self, pixels):
        if self.display_bus is not None and pixels:
            self.display_bus.send(pixels)

    # ********** INSTRUCTIONS
    @asm(Op.SYS)
    def _sys(self, opcode):
        """jump to a machine code routine, ignored by every interpreter but the original one"""
        return Next.ADVANCE

    @asm(Op.CLS)
    def _clear_screen(self, opcode):
        self.gfx[:] = bytes(DISPLAY_PIXELS)
        self._send([Pixel(x, y, 0) for x in range(DISPLAY_WIDTH) for y in range(DISPLAY_HEIGHT)])
        return Next.ADVANCE

    @asm(Op.RET)
    def _return(self, opcode):
        """return from a subroutine, then move past the call that got us there"""
        self.pc = self.stack.pop()
        return Next.ADVANCE

    @asm(Op.JP)
    def _jump(self, opcode):
        self.pc = opcode.address
        return Next.JUMP

    @asm(Op.CALL)
    def _call_addr(self, opcode):
        self.stack.push(self.pc)
        self.pc = opcode.address
        return Next.JUMP

    @asm(Op.SE_BYTE)
    def _skip_if_eq(self, opcode):
        return Next.SKIP if self.v_regs[opcode.x] == opcode.byte else Next.ADVANCE

    @asm(Op.SNE_BYTE)
    def _skip_if_not_eq(self, opcode):
        return Next.SKIP if self.v_regs[opcode.x] != opcode.byte else Next.ADVANCE

    @asm(Op.SE)
    def _skip_if_eq_regs(self, opcode):
        return Next.SKIP if self.v_regs[opcode.x] == self.v_regs[opcode.y] else Next.ADVANCE

    @asm(Op.SNE)
    def _skip_if_not_eq_regs(self, opcode):
        return Next.SKIP if self.v_regs[opcode.x] != self.v_regs[opcode.y] else Next.ADVANCE

    @asm(Op.LD_BYTE)
    def _set_vk(self, opcode):
        """set the value of one of the 16 variable registers, Vx"""
        self.v_regs[opcode.x] = opcode.byte
        return Next.ADVANCE

    @asm(Op.ADD_BYTE)
    def _add_to_vk(self, opcode):
        """add to the value already present in Vx, no carry"""
        self.v_regs[opcode.x] = (self.v_regs[opcode.x] + opcode.byte) & 0xFF
        return Next.ADVANCE

    @asm(Op.LD)
    def _set_vx_to_vy(self, opcode):
        self.v_regs[opcode.x] = self.v_regs[opcode.y]
        return Next.ADVANCE

    @asm(Op.OR)
    def _set_vx_or_vy(self, opcode):
        self.v_regs[opcode.x] |= self.v_regs[opcode.y]
        return Next.ADVANCE

    @asm(Op.AND)
    def _set_vx_and_vy(self, opcode):
        self.v_regs[opcode.x] &= self.v_regs[opcode.y]
        return Next.ADVANCE

    @asm(Op.XOR)
    def _set_vx_xor_vy(self, opcode):
        self.v_regs[opcode.x] ^= self.v_regs[opcode.y]
        return Next.ADVANCE

    # the flag is written before the result: with x == F the result wins
    @asm(Op.ADD)
    def _add_vx_vy(self, opcode):
        """set Vx = Vx + Vy, VF = carry"""
        total = self.v_regs[opcode.x] + self.v_regs[opcode.y]
        self.v_regs[0xF] = 1 if total > 0xFF else 0
        self.v_regs[opcode.x] = total & 0xFF
        return Next.ADVANCE

    @asm(Op.SUB)
    def _sub_vx_vy(self, opcode):
        """set Vx = Vx - Vy, VF = NOT borrow"""
        vx, vy = self.v_regs[opcode.x], self.v_regs[opcode.y]
        self.v_regs[0xF] = 1 if vx >= vy else 0
        self.v_regs[opcode.x] = (vx - vy) & 0xFF
        return Next.ADVANCE

    @asm(Op.SUBN)
    def _subn_vx_vy(self, opcode):
        """set Vx = Vy - Vx, VF = NOT borrow"""
        vx, vy = self.v_regs[opcode.x], self.v_regs[opcode.y]
        self.v_regs[0xF] = 1 if vy >= vx else 0
        self.v_regs[opcode.x] = (vy - vx) & 0xFF
        return Next.ADVANCE

    @asm(Op.SHR)
    def _shr(self, opcode):
        """set Vx = Vy SHR 1, VF = the bit shifted out"""
        vy = self.v_regs[opcode.y]
        self.v_regs[0xF] = vy & 0x1
        self.v_regs[opcode.x] = vy >> 1
        return Next.ADVANCE

    @asm(Op.SHL)
    def _shl(self, opcode):
        """set Vx = Vy SHL 1, VF = the bit shifted out"""
        vy = self.v_regs[opcode.y]
        self.v_regs[0xF] = (vy & 0x80) >> 7
        self.v_regs[opcode.x] = (vy << 1) & 0xFF
        return Next.ADVANCE

    @asm(Op.LD_I)
    def _set_idx(self, opcode):
        self.idx = opcode.address
        return Next.ADVANCE

    @asm(Op.JP_V0)
    def _jump_plus(self, opcode):
        self.pc = opcode.address + self.v_regs[0x0]
        return Next.JUMP

    @asm(Op.RND)
    def _random_byte_and(self, opcode):
        self.v_regs[opcode.x] = self.rng.randint(0, 255) & opcode.byte
        return Next.ADVANCE

    @asm(Op.DRW)
    def _to_screen(self, opcode):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x, y = self.v_regs[opcode.x], self.v_regs[opcode.y]
        sprite = self.mem[self.idx:self.idx + opcode.nibble]
        collision = 0
        pixels = []
        for row, sprite_byte in enumerate(sprite):
            # sprites going past an edge wrap around to the opposite one
            y_coordinate = (y + row) % DISPLAY_HEIGHT
            for col in range(8):
                if not (sprite_byte >> (7 - col)) & 0x1:
                    continue
                x_coordinate = (x + col) % DISPLAY_WIDTH
                cell = y_coordinate * DISPLAY_WIDTH + x_coordinate
                self.gfx[cell] ^= 1
                # a pixel gets erased only when it was ON and is drawn ON again
                if self.gfx[cell] == 0:
                    collision = 1
                pixels.append(Pixel(x_coordinate, y_coordinate, self.gfx[cell]))
        self.v_regs[0xF] = collision
        self._send(pixels)
        return Next.ADVANCE

    @asm(Op.SKP)
    def _skip_if_pressed(self, opcode):
        """skip the following instruction if the key stored in Vx is pressed, the press is used up"""
        if self.keypad.consume(self.v_regs[opcode.x]):
            return Next.SKIP
        return Next.ADVANCE

    @asm(Op.SKNP)
    def _skip_if_not_pressed(self, opcode):
        """skip the following instruction if the key stored in Vx is NOT pressed, a press is used up otherwise"""
        if self.keypad.consume(self.v_regs[opcode.x]):
            return Next.ADVANCE
        return Next.SKIP

    @asm(Op.LD_VX_DT)
    def _set_vx_dt(self, opcode):
        self.v_regs[opcode.x] = self.dt
        return Next.ADVANCE

    @asm(Op.LD_VX_K)
    def _wait_keypress(self, opcode):
        """wait for a key press and store its value in Vx"""
        key = self.keypad.take_first()
        if key is None:
            return Next.STALL       # stay on the same instruction until a key is pressed
        self.v_regs[opcode.x] = key
        return Next.ADVANCE

    @asm(Op.LD_DT)
    def _set_dt_vx(self, opcode):
        self.dt = self.v_regs[opcode.x]
        return Next.ADVANCE

    @asm(Op.LD_ST)
    def _set_st(self, opcode):
        self.st = self.v_regs[opcode.x]
        return Next.ADVANCE

    @asm(Op.ADD_I)
    def _add_to_idx(self, opcode):
        """set I = I + Vx, the result is only checked when I is used"""
        self.idx += self.v_regs[opcode.x]
        return Next.ADVANCE

    @asm(Op.LD_F)
    def _select_char(self, opcode):
        """set I to location of sprite for digit Vx"""
        digit = self.v_regs[opcode.x]
        if digit > 0xF:
            raise MemoryAccessError(FONTS_ADDR + digit * FONT_HEIGHT, f"There is no font sprite for 0x{digit:02x}")
        self.idx = FONTS_ADDR + digit * FONT_HEIGHT
        return Next.ADVANCE

    @asm(Op.LD_B)
    def _bcd_repr(self, opcode):
        """store the hundreds digit of Vx at I, the tens digit at I+1, the ones digit at I+2"""
        value = self.v_regs[opcode.x]
        self.mem[self.idx:self.idx+3] = bytes((value // 100, value // 10 % 10, value % 10))
        return Next.ADVANCE

    @asm(Op.LD_STORE)
    def _store_vregs(self, opcode):
        """store registers V0 through Vx (included) in memory starting at location I"""
        x = opcode.x
        self.mem[self.idx:self.idx+x+1] = self.v_regs[:x+1]
        self.idx += x + 1
        return Next.ADVANCE

    @asm(Op.LD_READ)
    def _load_vregs(self, opcode):
        """read registers V0 through Vx (included) from memory starting at location I"""
        x = opcode.x
        self.v_regs[:x+1] = self.mem[self.idx:self.idx+x+1]
        self.idx += x + 1
        return Next.ADVANCE

    # ********** CYCLE
    def advance(self):
        # each instruction is two bytes long
        self.pc += 0x2

    def advance_by(self, times):
        for _ in range(times):
            self.advance()

    def fetch(self):
        return self.mem.word(self.pc)

    def exec(self, instruction):
        """execute a decoded instruction and move the program counter accordingly"""
        after = self.instructions[instruction.op](instruction.opcode)
        self.advance_by(after.steps)
        return after

    def step(self):
        """fetch, decode and execute the instruction at pc, return its Next or None if it was unknown"""
        pc, opcode = self.pc, None
        try:
            opcode = self.fetch()
            instruction = decode(opcode)
            if instruction is None:
                logger.warning("mem_addr: 0x%04x    unknown opcode 0x%04x, skipped", pc, opcode)
                self.advance()
                return None
            return self.exec(instruction)
        except Chip8Error as err:
            if err.pc is None:
                err.pc = pc
            if err.opcode is None:
                err.opcode = opcode
            raise

    def update_timers(self):
        if self.dt > 0:
            self.dt -= 1
        if self.st > 0:
            self.st -= 1

    def tick(self):
        if self.clock is None:
            return False
        return self.clock.poll()

    def cycle(self):
        """emulate one machine cycle if the clock ticked, return whether it did"""
        if not self.tick():
            return False
        self.step()
        self.ticks += 1
        if self.ticks % self.timer_ratio == 0:
            self.update_timers()
        return True

    def run(self, stop_event, idle=0.0005):
        """keep cycling until stop_event is set, meant to be the target of the engine thread"""
        if self.clock is None:
            self.init_clock()
        try:
            while not stop_event.is_set():
                if not self.cycle():
                    stop_event.wait(idle)   # nothing to do until the next tick
        finally:
            self.shutdown()


class EngineThread(threading.Thread):
    """runs a Chip8 on its own thread and keeps the fatal error, if any, for the caller"""

    def __init__(self, chip):
        super().__init__(name="chip8-engine", daemon=True)
        self.chip = chip
        self.stop_event = threading.Event()
        self.error = None

    def run(self):
        try:
            self.chip.run(self.stop_event)
        except Chip8Error as err:
            self.error = err
            logger.error("The machine crashed: %s", err)
        except Exception as err:
            self.error = err
            logger.exception("The machine crashed at pc=0x%04x", self.chip.pc)

    def stop(self):
        self.stop_event.set()
        self.join()

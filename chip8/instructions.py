"""Instruction execution for the CHIP-8 interpreter."""

from dataclasses import dataclass, field
from typing import Callable, Optional
from .cpu import CPU
from .decoder import Opcode
from .devices import DISPLAY_HEIGHT, DISPLAY_WIDTH, IOBus
from .errors import UnimplementedOpcode
from .font import glyph_address
from .memory import Memory


# Instruction executor type. Returns the new PC when the instruction sets it
# absolutely, None for the normal PC += 2.
InstructionExecutor = Callable[[Opcode, CPU, Memory, IOBus], Optional[int]]


def _skip_if(cpu: CPU, condition: bool) -> int:
    return cpu.pc + (4 if condition else 2)


def _shift_source(op: Opcode, cpu: CPU) -> int:
    return cpu.v[op.y] if cpu.shift_uses_vy else cpu.v[op.x]


def execute_cls(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """00E0: clear the display"""
    io.display.clear()
    return None


def execute_ret(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """00EE: PC := pop()"""
    return cpu.pop()


def execute_jp(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """1nnn: PC := nnn"""
    return op.nnn


def execute_call(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """2nnn: push(PC + 2), PC := nnn"""
    cpu.push(cpu.pc + 2)
    return op.nnn


def execute_se_byte(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """3xnn: skip if Vx == nn"""
    return _skip_if(cpu, cpu.v[op.x] == op.nn)


def execute_sne_byte(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """4xnn: skip if Vx != nn"""
    return _skip_if(cpu, cpu.v[op.x] != op.nn)


def execute_se_reg(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """5xy0: skip if Vx == Vy"""
    return _skip_if(cpu, cpu.v[op.x] == cpu.v[op.y])


def execute_ld_byte(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """6xnn: Vx := nn"""
    cpu.set_register(op.x, op.nn)
    return None


def execute_add_byte(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """7xnn: Vx := Vx + nn, VF untouched"""
    cpu.set_register(op.x, cpu.v[op.x] + op.nn)
    return None


def execute_ld_reg(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy0: Vx := Vy"""
    cpu.set_register(op.x, cpu.v[op.y])
    return None


def execute_or(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy1: Vx := Vx OR Vy"""
    cpu.set_register(op.x, cpu.v[op.x] | cpu.v[op.y])
    return None


def execute_and(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy2: Vx := Vx AND Vy"""
    cpu.set_register(op.x, cpu.v[op.x] & cpu.v[op.y])
    return None


def execute_xor(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy3: Vx := Vx XOR Vy"""
    cpu.set_register(op.x, cpu.v[op.x] ^ cpu.v[op.y])
    return None


def execute_add_reg(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy4: Vx := Vx + Vy, VF := carry"""
    total = cpu.v[op.x] + cpu.v[op.y]
    cpu.set_register(op.x, total)
    cpu.set_flag(total > 0xFF)
    return None


def execute_sub(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy5: Vx := Vx - Vy, VF := NOT borrow"""
    vx, vy = cpu.v[op.x], cpu.v[op.y]
    cpu.set_register(op.x, vx - vy)
    cpu.set_flag(vx >= vy)
    return None


def execute_shr(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy6: Vx := src >> 1, VF := bit shifted out"""
    src = _shift_source(op, cpu)
    cpu.set_register(op.x, src >> 1)
    cpu.set_flag(src & 0x01)
    return None


def execute_subn(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xy7: Vx := Vy - Vx, VF := NOT borrow"""
    vx, vy = cpu.v[op.x], cpu.v[op.y]
    cpu.set_register(op.x, vy - vx)
    cpu.set_flag(vy >= vx)
    return None


def execute_shl(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """8xyE: Vx := src << 1, VF := bit shifted out"""
    src = _shift_source(op, cpu)
    cpu.set_register(op.x, src << 1)
    cpu.set_flag(src & 0x80)
    return None


def execute_sne_reg(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """9xy0: skip if Vx != Vy"""
    return _skip_if(cpu, cpu.v[op.x] != cpu.v[op.y])


def execute_ld_i(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Annn: I := nnn"""
    cpu.set_i(op.nnn)
    return None


def execute_jp_v0(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Bnnn: PC := nnn + V0"""
    return op.nnn + cpu.v[0]


def execute_rnd(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Cxnn: Vx := random byte AND nn"""
    cpu.set_register(op.x, io.rng.next_byte() & op.nn)
    return None


def execute_drw(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Dxyn: draw n-row sprite from I at (Vx, Vy), VF := collision"""
    rows = mem.read_block(cpu.i, op.n)
    width = getattr(io.display, "width", DISPLAY_WIDTH)
    height = getattr(io.display, "height", DISPLAY_HEIGHT)
    x = cpu.v[op.x] % width
    y = cpu.v[op.y] % height
    cpu.set_flag(io.display.draw(x, y, rows))
    return None


def execute_skp(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Ex9E: skip if key Vx is pressed"""
    return _skip_if(cpu, io.keypad.is_pressed(cpu.v[op.x] & 0xF))


def execute_sknp(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """ExA1: skip if key Vx is not pressed"""
    return _skip_if(cpu, not io.keypad.is_pressed(cpu.v[op.x] & 0xF))


def execute_ld_vx_dt(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx07: Vx := delay timer"""
    cpu.set_register(op.x, cpu.delay_timer)
    return None


def execute_ld_key(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx0A: wait for a key release, result goes to Vx.

    PC stays on this instruction; it advances when the host resumes.
    """
    cpu.waiting_register = op.x
    return cpu.pc


def execute_ld_dt(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx15: delay timer := Vx"""
    cpu.delay_timer = cpu.v[op.x]
    return None


def execute_ld_st(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx18: sound timer := Vx"""
    cpu.sound_timer = cpu.v[op.x]
    io.audio.update(cpu.sound_timer)
    return None


def execute_add_i(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx1E: I := I + Vx"""
    cpu.set_i(cpu.i + cpu.v[op.x])
    return None


def execute_ld_font(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx29: I := address of font glyph for digit Vx"""
    cpu.set_i(glyph_address(cpu.v[op.x]))
    return None


def execute_bcd(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx33: MEM[I..I+3] := hundreds, tens, units of Vx"""
    value = cpu.v[op.x]
    mem.write_block(cpu.i, (value // 100, (value // 10) % 10, value % 10))
    return None


def execute_store(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx55: MEM[I..I+x] := V0..Vx, I := I + x + 1"""
    mem.write_block(cpu.i, cpu.v[:op.x + 1])
    cpu.set_i(cpu.i + op.x + 1)
    return None


def execute_load(op: Opcode, cpu: CPU, mem: Memory, io: IOBus) -> Optional[int]:
    """Fx65: V0..Vx := MEM[I..I+x], I := I + x + 1"""
    for index, value in enumerate(mem.read_block(cpu.i, op.x + 1)):
        cpu.set_register(index, value)
    cpu.set_i(cpu.i + op.x + 1)
    return None


@dataclass(frozen=True)
class Rule:
    """One dispatch table entry.

    pattern is four characters, one per nibble: hex digits must match
    literally, any other character is a wildcard. syntax is a str.format
    template over the opcode's x, y, n, nn and nnn fields.
    """
    pattern: str
    syntax: str
    executor: InstructionExecutor
    mask: int = field(init=False)
    value: int = field(init=False)

    def __post_init__(self):
        mask = value = 0
        for ch in self.pattern:
            literal = ch in "0123456789ABCDEF"
            mask = (mask << 4) | (0xF if literal else 0)
            value = (value << 4) | (int(ch, 16) if literal else 0)
        object.__setattr__(self, "mask", mask)
        object.__setattr__(self, "value", value)

    def matches(self, op: Opcode) -> bool:
        return op.raw & self.mask == self.value


INSTRUCTION_RULES: list[Rule] = [
    Rule("00E0", "CLS", execute_cls),
    Rule("00EE", "RET", execute_ret),
    Rule("1nnn", "JP {nnn:#05x}", execute_jp),
    Rule("2nnn", "CALL {nnn:#05x}", execute_call),
    Rule("3xnn", "SE V{x:X}, {nn:#04x}", execute_se_byte),
    Rule("4xnn", "SNE V{x:X}, {nn:#04x}", execute_sne_byte),
    Rule("5xy0", "SE V{x:X}, V{y:X}", execute_se_reg),
    Rule("6xnn", "LD V{x:X}, {nn:#04x}", execute_ld_byte),
    Rule("7xnn", "ADD V{x:X}, {nn:#04x}", execute_add_byte),
    Rule("8xy0", "LD V{x:X}, V{y:X}", execute_ld_reg),
    Rule("8xy1", "OR V{x:X}, V{y:X}", execute_or),
    Rule("8xy2", "AND V{x:X}, V{y:X}", execute_and),
    Rule("8xy3", "XOR V{x:X}, V{y:X}", execute_xor),
    Rule("8xy4", "ADD V{x:X}, V{y:X}", execute_add_reg),
    Rule("8xy5", "SUB V{x:X}, V{y:X}", execute_sub),
    Rule("8xy6", "SHR V{x:X}, V{y:X}", execute_shr),
    Rule("8xy7", "SUBN V{x:X}, V{y:X}", execute_subn),
    Rule("8xyE", "SHL V{x:X}, V{y:X}", execute_shl),
    Rule("9xy0", "SNE V{x:X}, V{y:X}", execute_sne_reg),
    Rule("Annn", "LD I, {nnn:#05x}", execute_ld_i),
    Rule("Bnnn", "JP V0, {nnn:#05x}", execute_jp_v0),
    Rule("Cxnn", "RND V{x:X}, {nn:#04x}", execute_rnd),
    Rule("Dxyn", "DRW V{x:X}, V{y:X}, {n}", execute_drw),
    Rule("Ex9E", "SKP V{x:X}", execute_skp),
    Rule("ExA1", "SKNP V{x:X}", execute_sknp),
    Rule("Fx07", "LD V{x:X}, DT", execute_ld_vx_dt),
    Rule("Fx0A", "LD V{x:X}, K", execute_ld_key),
    Rule("Fx15", "LD DT, V{x:X}", execute_ld_dt),
    Rule("Fx18", "LD ST, V{x:X}", execute_ld_st),
    Rule("Fx1E", "ADD I, V{x:X}", execute_add_i),
    Rule("Fx29", "LD F, V{x:X}", execute_ld_font),
    Rule("Fx33", "LD B, V{x:X}", execute_bcd),
    Rule("Fx55", "LD [I], V{x:X}", execute_store),
    Rule("Fx65", "LD V{x:X}, [I]", execute_load),
]


def build_dispatch_table(rules: list[Rule]) -> dict[int, list[Rule]]:
    """Bucket rules by their literal high nibble.

    Raises ValueError if a rule has a wildcard high nibble or if two rules
    in a bucket can match the same opcode.
    """
    table: dict[int, list[Rule]] = {}
    for rule in rules:
        if rule.mask & 0xF000 != 0xF000:
            raise ValueError(f"Rule {rule.pattern} needs a literal high nibble")
        bucket = table.setdefault(rule.value >> 12, [])
        for other in bucket:
            if (rule.value ^ other.value) & rule.mask & other.mask == 0:
                raise ValueError(f"Rules {other.pattern} and {rule.pattern} overlap")
        bucket.append(rule)
    return table


DISPATCH_TABLE = build_dispatch_table(INSTRUCTION_RULES)


def lookup(op: Opcode) -> Optional[Rule]:
    """Find the rule matching an opcode, or None."""
    for rule in DISPATCH_TABLE.get(op.kind, ()):
        if rule.matches(op):
            return rule
    return None


def disassemble(op: Opcode) -> str:
    """Render an opcode as assembler text, e.g. 'ADD V1, V2'."""
    rule = lookup(op)
    if rule is None:
        return f"DW {op.raw:#06x}"
    return rule.syntax.format(x=op.x, y=op.y, n=op.n, nn=op.nn, nnn=op.nnn)


def execute_instruction(
    op: Opcode,
    cpu: CPU,
    mem: Memory,
    io: IOBus,
) -> Optional[int]:
    """Execute a single instruction.

    Returns:
        New PC value if the instruction sets it, None otherwise
    """
    rule = lookup(op)
    if rule is None:
        raise UnimplementedOpcode(op.raw, cpu.pc)
    return rule.executor(op, cpu, mem, io)

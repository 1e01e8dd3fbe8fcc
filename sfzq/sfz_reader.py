"""Parser for SFZ instrument files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .region import LoopMode, SFZRegion, Trigger

_ULONG_MASK = 2**64 - 1
_INT_RE = re.compile(r"\s*[+-]?[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(
    r"\s*[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.ASCII | re.IGNORECASE,
)
_BLANKS_RE = re.compile(r"[ \t]*")
_LINE_END_RE = re.compile(r"[\r\n]")
_TAG_END_RE = re.compile(r"[>\r\n]")
_PARAM_NAME_RE = re.compile(r"[^= \t\r\n]*")
_VALUE_RE = re.compile(r"[^ \t\r\n]*")

# Semitone offsets of the natural notes, from A.
_NOTE_OFFSETS = {"a": 12, "b": 14, "c": 3, "d": 5, "e": 7, "f": 8, "g": 10}


def _stol(value: str) -> int:
    match = _INT_RE.match(value)
    if match is None:
        raise ValueError(f"invalid integer value: {value!r}")
    return int(match.group())


def _stof(value: str) -> float:
    match = _FLOAT_RE.match(value)
    if match is None:
        raise ValueError(f"invalid number: {value!r}")
    return float(match.group().strip())


def key_value(text: str) -> int:
    """MIDI note number for a number or a note name such as ``c#4`` (A3 is 57)."""
    if not text:
        raise ValueError("empty key value")
    if text[0] in "0123456789":
        return _stol(text)
    note = _NOTE_OFFSETS.get(text[0].lower(), 0)
    octave_start = 1
    accidental = text[1:2]
    if accidental == "b":
        note -= 1
        octave_start = 2
    elif accidental == "#":
        note += 1
        octave_start = 2
    octave = _stol(text[octave_start:])
    return octave * 12 + note + (57 - 4 * 12)


def trigger_value(text: str) -> Trigger:
    return {
        "release": Trigger.RELEASE,
        "first": Trigger.FIRST,
        "legato": Trigger.LEGATO,
    }.get(text, Trigger.ATTACK)


def loop_mode_value(text: str) -> LoopMode:
    return {
        "no_loop": LoopMode.NO_LOOP,
        "one_shot": LoopMode.ONE_SHOT,
        "loop_continuous": LoopMode.LOOP_CONTINUOUS,
        "loop_sustain": LoopMode.LOOP_SUSTAIN,
    }.get(text, LoopMode.SAMPLE_LOOP)


def _set_key(region: SFZRegion, value: str) -> None:
    region.pitch_keycenter = key_value(value)
    region.lokey = region.hikey = region.pitch_keycenter & 0xFF


def _set_end(region: SFZRegion, value: str) -> None:
    end = _stol(value)
    if end < 0:
        region.negative_end = True
    else:
        region.end = end


def _attr_setter(attr: str, convert: Callable[[str], object]):
    def setter(region: SFZRegion, value: str) -> None:
        setattr(region, attr, convert(value))
    return setter


def _eg_setter(eg_name: str, attr: str):
    def setter(region: SFZRegion, value: str) -> None:
        setattr(getattr(region, eg_name), attr, _stof(value))
    return setter


def _key_byte(value: str) -> int:
    return key_value(value) & 0xFF


def _byte(value: str) -> int:
    return _stol(value) & 0xFF


def _ulong(value: str) -> int:
    return _stol(value) & _ULONG_MASK


_EG_STAGES = ("delay", "start", "attack", "hold", "decay", "sustain", "release")

_OPCODE_SETTERS: dict[str, Callable[[SFZRegion, str], None]] = {
    "lokey": _attr_setter("lokey", _key_byte),
    "hikey": _attr_setter("hikey", _key_byte),
    "key": _set_key,
    "lovel": _attr_setter("lovel", _byte),
    "hivel": _attr_setter("hivel", _byte),
    "trigger": _attr_setter("trigger", trigger_value),
    "group": _attr_setter("group", _ulong),
    "off_by": _attr_setter("off_by", _ulong),
    "offset": _attr_setter("offset", _ulong),
    "end": _set_end,
    "loop_start": _attr_setter("loop_start", _ulong),
    "loop_end": _attr_setter("loop_end", _ulong),
    "transpose": _attr_setter("transpose", _stol),
    "tune": _attr_setter("tune", _stol),
    "pitch_keycenter": _attr_setter("pitch_keycenter", key_value),
    "pitch_keytrack": _attr_setter("pitch_keytrack", _stol),
    "bend_up": _attr_setter("bend_up", _stol),
    "bend_down": _attr_setter("bend_down", _stol),
    "volume": _attr_setter("volume", _stof),
    "pan": _attr_setter("pan", _stof),
    "amp_veltrack": _attr_setter("amp_veltrack", _stof),
    "lorand": _attr_setter("lorand", _stof),
    "hirand": _attr_setter("hirand", _stof),
    "seq_position": _attr_setter("seq_position", _stol),
    "seq_length": _attr_setter("seq_length", _stol),
    **{f"ampeg_{stage}": _eg_setter("ampeg", stage) for stage in _EG_STAGES},
    **{
        f"ampeg_vel2{stage}": _eg_setter("ampeg_veltrack", stage)
        for stage in _EG_STAGES
        if stage != "start"
    },
}

_SUPPORTED_LOOP_MODES = ("no_loop", "one_shot", "loop_continuous")


def _skip_blanks(text: str, p: int) -> int:
    if p >= len(text):
        return p
    return _BLANKS_RE.match(text, p).end()


def _find_line_end(text: str, p: int) -> int:
    match = _LINE_END_RE.search(text, p) if p < len(text) else None
    return match.start() if match else len(text)


def _read_path(text: str, p: int) -> tuple[str, int]:
    """Read a path value, which may contain spaces; return it and the new position."""
    end = len(text)
    start = p
    potential_end: Optional[int] = None
    while p < end:
        c = text[p]
        if c == " ":
            # Part of the path, or the start of the next opcode?  Not known yet.
            potential_end = p
            p += 1
            while p < end and text[p] == " ":
                p += 1
        elif c in "\n\r\t":
            break
        elif c == "=":
            # That was an opcode; rewind to before it.
            p = potential_end if potential_end is not None else start
            break
        p += 1
    return (text[start:p] if p > start else ""), p


@dataclass
class _ReadState:
    cur_global: SFZRegion = field(default_factory=SFZRegion)
    cur_group: SFZRegion = field(default_factory=SFZRegion)
    cur_region: SFZRegion = field(default_factory=SFZRegion)
    building: Optional[SFZRegion] = None
    in_control: bool = False
    default_path: str = ""

    def building_region(self) -> bool:
        return self.building is not None and self.building is self.cur_region


class SFZReader:
    """Reads SFZ text, adding regions, samples, errors and unsupported opcodes to a sound."""

    def __init__(self, sound):
        self.sound = sound
        self.line = 1

    def read_file(self, path) -> None:
        """Read the SFZ file at ``path``; an unreadable file is reported as an error."""
        try:
            with open(path, "rb") as file:
                data = file.read()
        except OSError:
            self.sound.add_error(f'Couldn\'t read "{path}"')
            return
        self.read(data.decode("utf-8", errors="surrogateescape"))

    def read(self, text: str) -> None:
        """Read SFZ text."""
        state = _ReadState()
        self._parse(text, state)
        if state.building_region():
            self._finish_region(state.cur_region)

    def _parse(self, text: str, state: _ReadState) -> None:
        end = len(text)
        p = 0
        while p < end:
            p = _skip_blanks(text, p)
            if p >= end:
                break
            c = text[p]
            if c == "/":
                p = self._handle_line_end(text, _find_line_end(text, p + 1))
                continue
            if c in "\r\n":
                p = self._handle_line_end(text, p)
                continue

            while p < end:
                c = text[p]
                if c == "<":
                    close = _TAG_END_RE.search(text, p + 1)
                    if close is None or close.group() != ">" or close.end() >= end:
                        self._error("Unterminated tag")
                        return
                    tag = text[p + 1:close.start()]
                    p = close.end()
                    self._handle_tag(tag, state)
                elif c == "/":
                    p = _find_line_end(text, p)
                else:
                    p = self._handle_parameter(text, p, state)

                p = _skip_blanks(text, p)
                if p < end and text[p] in "\r\n":
                    p = self._handle_line_end(text, p)
                    break

    def _handle_tag(self, tag: str, state: _ReadState) -> None:
        if tag not in ("region", "group", "global", "control"):
            self._error("Illegal tag")
            return
        if state.building_region():
            self._finish_region(state.cur_region)
        state.in_control = False
        if tag == "region":
            state.cur_region = state.cur_group.copy()
            state.building = state.cur_region
        elif tag == "group":
            state.cur_group = state.cur_global.copy()
            state.building = state.cur_group
        elif tag == "global":
            state.cur_global.clear()
            state.building = state.cur_global
        else:
            state.cur_group.clear()
            state.building = None
            state.in_control = True

    def _handle_parameter(self, text: str, p: int, state: _ReadState) -> int:
        end = len(text)
        name_end = _PARAM_NAME_RE.match(text, p).end()
        found = name_end < end
        after = name_end + 1 if found else end
        if not found or text[name_end] != "=" or after >= end:
            self._error("Malformed parameter")
            return after
        opcode = text[p:name_end]
        p = after

        if state.in_control:
            if opcode == "default_path":
                state.default_path, p = _read_path(text, p)
            else:
                p = _VALUE_RE.match(text, p).end()
                self.sound.add_unsupported_opcode(f"{opcode} (in <control>)")
            return p

        if opcode == "sample":
            path, p = _read_path(text, p)
            if not path:
                self._error("Empty sample path")
            elif state.building is not None:
                state.building.sample = self.sound.add_sample(path, state.default_path)
            else:
                self._error("Adding sample outside a group or region")
            return p

        value_match = _VALUE_RE.match(text, p)
        value = value_match.group()
        p = value_match.end()
        setter = _OPCODE_SETTERS.get(opcode)
        if state.building is None:
            self._error("Setting a parameter outside a region or group")
        elif setter is not None:
            setter(state.building, value)
        elif opcode == "loop_mode":
            if value in _SUPPORTED_LOOP_MODES:
                state.building.loop_mode = loop_mode_value(value)
            else:
                self.sound.add_unsupported_opcode(f"{opcode}={value}")
        elif opcode == "default_path":
            self._error('"default_path" outside of <control> tag')
        else:
            self.sound.add_unsupported_opcode(opcode)
        return p

    def _handle_line_end(self, text: str, p: int) -> int:
        if text.startswith("\r\n", p):
            p += 2
        else:
            p += 1
        self.line += 1
        return p

    def _finish_region(self, region: SFZRegion) -> None:
        self.sound.add_region(region.copy())

    def _error(self, message: str) -> None:
        self.sound.add_error(f"{message} (line {self.line}).")
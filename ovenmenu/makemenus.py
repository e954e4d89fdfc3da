"""Generate menu tables and handler stubs from menu descriptor files.

Each descriptor line is one menu item.  ``$name`` marks a field with no
go-function, ``%name`` one with a go-function; after the name, ``?``
adds input and output functions, ``&`` toggle and output, ``%`` output
only, and ``$`` none.  A line ``!name`` makes the previous item repeat
as many times as the named function returns.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

CH_REPEAT = "!"
CH_NG = "$"
CH_GO = "%"
CH_NO = "$"
CH_OUT = "%"
CH_IN = "?"
CH_TOG = "&"

VC_PATH = "../menusm/menus.vc"
EXT_PATH = "../menusm/menus.ext"

_STUB_HEADER = (
    '#include "../oven.h"\n'
    '#include "../menus.h"\n'
    '#include "../context.h"\n'
    '#include "../global.h"\n'
)
_STUB_END = "\treturn (t);\n}\n"


@dataclass
class MenuOutput:
    """Generated text: table code, declarations and handler stubs."""

    vc: str = ""
    ext: str = ""
    tc: str = ""


@dataclass
class _Writer:
    menu_id: str
    vc: List[str] = field(default_factory=list)
    ext: List[str] = field(default_factory=list)
    tc: List[str] = field(default_factory=list)

    def handler(self, slot: str, suffix: str, name: str, stub: str) -> None:
        func = f"{self.menu_id}{name}{suffix}"
        self.vc.append(f"\tip->{slot} = {func};\n")
        self.ext.append(f"extern int\t{func}();\n")
        self.tc.append(stub)

    def simple_stub(self, name: str, suffix: str, repeat: bool) -> str:
        args = "n" if repeat else ""
        decl = "int\tn;\n" if repeat else ""
        return f"\n{self.menu_id}{name}{suffix} ({args})\n{decl}{{\n\tint\tt = 0;\n\n{_STUB_END}"

    def string_stub(self, name: str, suffix: str, repeat: bool) -> str:
        args = "n, " if repeat else ""
        decl = "int\tn;\n" if repeat else ""
        return (
            f"\n{self.menu_id}{name}{suffix} ({args}s)\n{decl}char\t*s;\n"
            f"{{\n\tint\tt = 0;\n\n{_STUB_END}"
        )

    def repeat_item(self, name: str) -> None:
        func = f"{self.menu_id}{name}"
        self.vc.append(f"\tip->ntimes = {func};\n")
        self.ext.append(f"extern int\t{func}();\n")
        self.tc.append(f"\n{func} ()\n{{\n\tint\tn = 0;\n\n\treturn (n);\n}}\n")

    def item(self, line: str, repeat: bool) -> None:
        self.vc.append('#include "menus.i"\n')
        start = next((i for i, ch in enumerate(line) if ch in (CH_NG, CH_GO)), None)
        if start is not None:
            line = self._field(line, start, repeat)
        text = line.strip(" ")
        if text:
            text_start = len(line) - len(line.lstrip(" "))
            text_end = len(line.rstrip(" ")) - 1
            self.vc.append(f"\tip->text_start = {text_start};\n")
            self.vc.append(f"\tip->text_end   = {text_end};\n")
            self.vc.append(f'\tip->text = "{text}";\n')

    def _field(self, line: str, start: int, repeat: bool) -> str:
        name_end = line.find(" ", start + 1)
        if name_end < 0:
            name_end = len(line)
        name = line[start + 1:name_end]
        if line[start] == CH_GO:
            self.handler("gfunc", "g", name, self.simple_stub(name, "g", repeat))
        end = name_end
        while end < len(line):
            ch = line[end]
            if ch == CH_NO:
                break
            if ch == CH_IN:
                self.handler("ifunc", "i", name, self.string_stub(name, "i", repeat))
            if ch == CH_TOG:
                self.handler("tfunc", "t", name, self.simple_stub(name, "t", repeat))
            if ch in (CH_OUT, CH_IN, CH_TOG):
                self.handler("ofunc", "o", name, self.string_stub(name, "o", repeat))
                break
            end += 1
        self.vc.append(f"\tip->func_start = {start};\n")
        self.vc.append(f"\tip->func_end   = {end};\n")
        blank_end = min(end + 1, len(line))
        return line[:start] + " " * (blank_end - start) + line[blank_end:]


def make_menus(menu_id: str, lines: Iterable[str]) -> MenuOutput:
    """Generate the table code, declarations and stubs for one menu."""
    entries = [line.removesuffix("\n") for line in lines] or [""]
    writer = _Writer(menu_id)
    writer.vc.append('#include "menus.m"\n')
    writer.vc.append(f'\tmp->id = "{menu_id}";\n')
    writer.tc.append(_STUB_HEADER)

    for index, line in enumerate(entries):
        following = entries[index + 1] if index + 1 < len(entries) else ""
        repeat = following.startswith(CH_REPEAT)
        if line.startswith(CH_REPEAT):
            writer.repeat_item(line[1:])
        else:
            writer.item(line, repeat)

    return MenuOutput(vc="".join(writer.vc), ext="".join(writer.ext), tc="".join(writer.tc))


def _menu_id(path: str) -> str:
    tail = path.rpartition("/")[2]
    return tail or path


def _read_lines(path: str) -> List[str]:
    with open(path) as handle:
        text = handle.read()
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Process descriptor files named in ``argv``; return an exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        table = open(VC_PATH, "w")
    except OSError:
        return 1
    with table:
        try:
            declarations = open(EXT_PATH, "w")
        except OSError:
            return 2
        with declarations:
            for path in argv:
                menu_id = _menu_id(path)
                try:
                    lines = _read_lines(path)
                    stubs = open(f"{menu_id}.tc", "w")
                except OSError:
                    break
                output = make_menus(menu_id, lines)
                with stubs:
                    stubs.write(output.tc)
                table.write(output.vc)
                declarations.write(output.ext)
    return 0


if __name__ == "__main__":
    sys.exit(main())
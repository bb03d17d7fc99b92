"""Butano header text for a walkability grid."""

from typing import Iterable, List, Sequence


HEADER_INCLUDE = "bn_core.h"
HEADER_NAMESPACE = "gj"
HEADER_EXTENSION = "hh"


def guard_name(base_name: str) -> str:
    """Include guard for a header; the base name is not sanitized."""
    return f"{base_name.upper()}_{HEADER_EXTENSION.upper()}"


def _header_lines(base_name: str, width: int, height: int) -> List[str]:
    definition = guard_name(base_name)
    return [
        f"#ifndef {definition}",
        f"#define {definition}",
        "",
        f'#include "{HEADER_INCLUDE}"',
        "",
        f"namespace {HEADER_NAMESPACE} {{",
        "",
        f"const uint8_t SPRITES_PER_ROW = {width};",
        "",
        f"const uint8_t SPRITES_PER_COLUMN = {height};",
        "",
    ]


def _array_lines(grid: Iterable[Sequence[int]]) -> List[str]:
    lines = ["constexpr const uint8_t collisions[] = {"]
    for row in grid:
        lines.append("\t" + ", ".join(str(int(value)) for value in row) + ",")
    lines.append("};")
    return lines


def _footer_lines() -> List[str]:
    return [
        "}",
        "",
        "#endif",
    ]


def render(base_name: str, width: int, height: int,
           grid: Iterable[Sequence[int]]) -> str:
    """
    Render the complete header.

    grid is any iterable of rows (a WalkabilityGrid or lists of ints).
    Every line, the last one included, ends with a newline.
    """
    lines = (_header_lines(base_name, width, height)
             + _array_lines(grid)
             + [""]
             + _footer_lines())
    return "".join(line + "\n" for line in lines)

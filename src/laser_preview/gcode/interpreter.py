# src/laser_preview/gcode/interpreter.py
"""Minimal G-code interpreter driving the burn simulation.

Recognised words (case-insensitive, whitespace separated):

    G0          travel, beam off
    G1 G2 G3    move with the beam on (arcs are drawn as straight moves)
    M3 M4       beam on; spindle defaults to 255 if no S word was seen yet
    M5          beam off
    X Y         target position [mm], applied at end of line
    S           spindle value (0..255)
    F           feed rate [mm/min], sets the energy delivered per cell

Everything after `;` and inside parentheses is a comment. Other words are
ignored and unparsable numbers read as 0, so a damaged file still renders.
"""
from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from laser_preview.core.state import BurnContext, MotionState
from laser_preview.scan.engine import BurnSegment
from laser_preview.scan.raster import VectorRasterizer

logger = logging.getLogger(__name__)

_COMMENT = re.compile(r"\([^)]*\)?")
_NUMBER_PREFIX = re.compile(r"\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def parse_number(text: str) -> float:
    """Read the longest numeric prefix of `text`, 0.0 if there is none."""
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group(0))


def tokenize(line: str) -> list[tuple[str, float]]:
    """Split a program line into (letter, value) words, comments removed."""
    line = line.split(";", 1)[0]
    line = _COMMENT.sub(" ", line)
    return [(word[0].upper(), parse_number(word[1:])) for word in line.split()]


class MotionInterpreter:
    """
    Line-oriented state machine turning program text into burn segments.

    X/Y targets are scaled by the beam zoom (cells per mm) and rounded to
    `coordinate_grid` steps per cell. At the end of each line, if the beam is on
    and the target moved, the move from the current position to the target is
    rasterized; the target then becomes the current position whether or not
    anything was drawn.

    Args:
        ctx (BurnContext): Shared run context. Its `pixel_energy` is updated by F words.
        rasterizer (VectorRasterizer): Receives every committed drawing move.
    """

    def __init__(self, ctx: BurnContext, rasterizer: VectorRasterizer):
        self.ctx = ctx
        self.rasterizer = rasterizer
        self.state = MotionState()

        cfg = ctx.config
        self.zoom = cfg.beam.zoom
        self.grid = float(cfg.coordinate_grid)
        if cfg.initial_feed is not None:
            self.state.feed = cfg.initial_feed

    def to_cells(self, value_mm: float) -> float:
        """Scale a program coordinate to cells, rounded to the coordinate grid."""
        return math.floor(value_mm * self.zoom * self.grid + 0.5) / self.grid

    def feed_line(self, line: str) -> BurnSegment | None:
        """
        Interpret one program line.

        Returns:
            BurnSegment | None: The move drawn by this line, if any.

        Raises:
            CanvasAllocationError: If the canvas cannot grow while drawing.
        """
        st = self.state
        st.line_no += 1

        for letter, value in tokenize(line):
            if letter == "G":
                if value == 0:
                    st.drawing = False
                elif 1 <= value <= 3:
                    st.drawing = True
            elif letter == "M":
                if value in (3, 4):
                    st.drawing = True
                    if not st.spindle_set:
                        st.spindle = 255.0
                elif value == 5:
                    st.drawing = False
            elif letter == "X":
                st.target_x = self.to_cells(value)
            elif letter == "Y":
                st.target_y = self.to_cells(value)
            elif letter == "S":
                st.spindle = value
                st.spindle_set = True
            elif letter == "F":
                if value > 0.0:
                    st.feed = value
                    self.ctx.pixel_energy = self.ctx.config.beam.pixel_energy(value)
                else:
                    logger.debug(f"Ignoring feed rate {value} at line {st.line_no}")
            else:
                logger.debug(f"Ignoring word {letter}{value:g} at line {st.line_no}")

        segment = None
        if st.drawing and (st.target_x != st.x or st.target_y != st.y):
            segment = BurnSegment(
                x_start=st.x,
                y_start=st.y,
                x_end=st.target_x,
                y_end=st.target_y,
                intensity=self.ctx.config.beam.intensity(st.spindle),
                line_no=st.line_no,
            )
            self.rasterizer.draw_segment(segment)
            self.ctx.stats.segments += 1

        st.x = st.target_x
        st.y = st.target_y
        return segment

    def run(
        self,
        lines: Iterable[str],
        on_line: Callable[[int], None] | None = None,
    ) -> int:
        """
        Interpret every line in order.

        Args:
            lines (Iterable[str]): Program text, one line per item.
            on_line (Callable | None): Called with the number of lines read so far
                                       after each line.

        Returns:
            int: Number of lines read.
        """
        count = 0
        for line in lines:
            self.feed_line(line)
            count += 1
            if on_line is not None:
                on_line(count)
        return count


@contextmanager
def open_program(path: str | Path) -> Iterator[TextIO]:
    """
    Open a program file for reading.

    Bytes outside ASCII are replaced rather than rejected; they can only occur
    in comments or in words that are ignored anyway.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"G-code file not found: {path}")
    with open(path, "r", encoding="ascii", errors="replace") as f:
        yield f

"""Facades for the external render engine, image toolkit and video encoder.

Each facade only builds StageInvocations (and parses textual reports); the
StageExecutor runs them. Command shapes follow the Teem ``mrender`` and
``unu`` tools and MEncoder.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np

from volvid.frames.params import FrameParameters
from volvid.stages.invocation import StageInvocation

__all__ = ['RenderEngine', 'ImageToolkit', 'VideoEncoder', 'MinMaxReport']

logger = logging.getLogger(__name__)


def _num(value) -> str:
    return repr(float(value))


def _vec(values) -> Tuple[str, ...]:
    return tuple(_num(v) for v in values)


class RenderEngine:
    """Builds render invocations for one input volume."""

    tool = "render"

    def __init__(self, config):
        self.program = config.render.program
        self.threads = config.render.threads
        self.volume = Path(config.input)

    def render(self, frame: FrameParameters, query: str, measure: str, output: Path) -> StageInvocation:
        width, height = frame.resolution
        args = [
            ("-i", str(self.volume)),
            ("-fr", _vec(frame.eye_position())),
            ("-at", _vec(frame.at)),
            ("-up", _vec(frame.up)),
        ]
        if frame.right_handed:
            args.append(("-rh", None))
        if frame.at_relative:
            args.append(("-ar", None))
        args += [
            ("-dn", _num(frame.near)),
            ("-df", _num(frame.far)),
            ("-di", _num(frame.image_distance)),
            ("-ur", _vec(frame.u_range)),
            ("-vr", _vec(frame.v_range)),
            ("-is", (str(width), str(height))),
            ("-k00", frame.value_kernel),
            ("-k11", frame.derivative_kernel),
            ("-q", query),
            ("-m", measure),
            ("-step", _num(frame.step)),
            ("-nt", str(self.threads)),
            ("-o", str(output)),
        ]
        return StageInvocation(
            operation="render",
            tool=self.tool,
            program=(self.program,),
            args=tuple(args),
            inputs=(self.volume,),
            outputs=(Path(output),),
        )


@dataclass(frozen=True)
class MinMaxReport:
    """Parsed min/max report for one artifact."""
    lo: float
    hi: float
    has_nonfinite: bool

    @property
    def finite(self) -> bool:
        return bool(np.isfinite(self.lo) and np.isfinite(self.hi))


_MIN = re.compile(r"^\s*min\s*:\s*(\S+)", re.MULTILINE | re.IGNORECASE)
_MAX = re.compile(r"^\s*max\s*:\s*(\S+)", re.MULTILINE | re.IGNORECASE)


class ImageToolkit:
    """Builds ``unu`` invocations.

    Dice contract: slicing ``prefix`` over N frames writes
    ``prefix000.nrrd`` ... in slice order (``dice_digits`` wide). The
    orchestrator relies on slice *i* being frame *i* of the sequence.
    """

    tool = "toolkit"

    def __init__(self, config):
        self.program = config.toolkit.program
        self.axis = config.toolkit.slab_axis
        self.digits = config.toolkit.dice_digits
        self.volume_ext = config.render.volume_ext
        self.equalize = config.equalize
        self.bits = config.quantize.bits
        self.nan_fill = config.quantize.nan_fill

    def _op(self, operation, words, args=(), operands=(), inputs=(), outputs=()):
        return StageInvocation(
            operation=operation,
            tool=self.tool,
            program=(self.program,) + tuple(words),
            args=tuple(args),
            operands=tuple(str(o) for o in operands),
            inputs=tuple(Path(p) for p in inputs),
            outputs=tuple(Path(p) for p in outputs),
        )

    def join(self, inputs: Sequence[Path], output: Path) -> StageInvocation:
        return self._op(
            "join", ("join",),
            args=[
                ("-i", tuple(str(p) for p in inputs)),
                ("-a", str(self.axis)),
                ("-incr", None),
                ("-o", str(output)),
            ],
            inputs=inputs, outputs=[output],
        )

    def heq(self, slab: Path, output: Path) -> StageInvocation:
        return self._op(
            "heq", ("heq",),
            args=[
                ("-i", str(slab)),
                ("-b", str(self.equalize.bins)),
                ("-s", str(self.equalize.smart)),
                ("-a", _num(self.equalize.amount)),
                ("-o", str(output)),
            ],
            inputs=[slab], outputs=[output],
        )

    def dice_paths(self, prefix: Path, count: int) -> List[Path]:
        """Files the dice operation writes for ``count`` slices."""
        return [Path(f"{prefix}{i:0{self.digits}d}.{self.volume_ext}") for i in range(count)]

    def dice(self, slab: Path, prefix: Path, count: int) -> StageInvocation:
        return self._op(
            "dice", ("dice",),
            args=[
                ("-i", str(slab)),
                ("-a", str(self.axis)),
                ("-ff", f"%0{self.digits}d.{self.volume_ext}"),
                ("-o", str(prefix)),
            ],
            inputs=[slab], outputs=self.dice_paths(prefix, count),
        )

    def rmap(self, source: Path, colormap: Path, output: Path) -> StageInvocation:
        return self._op(
            "rmap", ("rmap",),
            args=[("-i", str(source)), ("-m", str(colormap)), ("-o", str(output))],
            inputs=[source, colormap], outputs=[output],
        )

    def minmax(self, source: Path) -> StageInvocation:
        return self._op("minmax", ("minmax",), operands=[source], inputs=[source])

    def strip_nan(self, source: Path) -> StageInvocation:
        """Replace non-existent samples with the sentinel, in place."""
        return self._op(
            "nanstrip", ("2op", "exists"),
            operands=[source, _num(self.nan_fill)],
            args=[("-o", str(source))],
            inputs=[source], outputs=[source],
        )

    def quantize(self, source: Path, lo: float, hi: float, output: Path) -> StageInvocation:
        return self._op(
            "quantize", ("quantize",),
            args=[
                ("-b", str(self.bits)),
                ("-min", _num(lo)),
                ("-max", _num(hi)),
                ("-i", str(source)),
                ("-o", str(output)),
            ],
            inputs=[source], outputs=[output],
        )

    @staticmethod
    def parse_minmax(text: str) -> MinMaxReport:
        """Parse ``min: X`` / ``max: Y`` lines.

        Non-finite samples are flagged when the report mentions
        non-existent values or either bound is itself NaN/inf.

        Raises
        ------
        ValueError
            If either bound is missing or unparseable.
        """
        lo_match, hi_match = _MIN.search(text), _MAX.search(text)
        if lo_match is None or hi_match is None:
            raise ValueError(f"min/max report not understood: {text!r}")
        lo, hi = float(lo_match.group(1)), float(hi_match.group(1))
        has_nonfinite = bool("non-existent" in text.lower() or not (np.isfinite(lo) and np.isfinite(hi)))
        return MinMaxReport(lo, hi, has_nonfinite)


class VideoEncoder:
    """Builds the encode invocation and its frame manifest."""

    tool = "encoder"

    def __init__(self, config):
        self.program = config.video.program
        self.fps = config.video.fps
        self.factor = config.video.bitrate_factor
        self.codec = config.video.codec
        self.image_ext = config.quantize.image_ext

    def bitrate(self, width: int, height: int) -> int:
        """Empirical bitrate: ``factor * fps * w * h / 256``.

        With the default factor 60 at 25 fps this is ``60*25*w*h/256``; the
        factor is a quality/size knob, not a derived constant.
        """
        return int(self.factor * self.fps * width * height / 256)

    @staticmethod
    def write_manifest(images: Sequence[Path], manifest: Path) -> Path:
        """One image path per line, in frame order."""
        manifest = Path(manifest)
        manifest.write_text("".join(f"{p}\n" for p in images))
        return manifest

    def encode(self, manifest: Path, images: Sequence[Path], resolution: Tuple[int, int], output: Path) -> StageInvocation:
        width, height = resolution
        return StageInvocation(
            operation="encode",
            tool=self.tool,
            program=(self.program,),
            operands=(f"mf://@{manifest}",),
            args=(
                ("-mf", f"w={width}:h={height}:fps={self.fps}:type={self.image_ext}"),
                ("-ovc", "lavc"),
                ("-lavcopts", f"vcodec={self.codec}:vbitrate={self.bitrate(width, height)}"),
                ("-o", str(output)),
            ),
            inputs=(Path(manifest),) + tuple(Path(p) for p in images),
            outputs=(Path(output),),
        )

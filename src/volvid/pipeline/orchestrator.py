"""Per-(query, measure) pipeline orchestration.

Sequences the stages of one run and hands artifacts from each stage to
the next. Every stage is gated on the existence of its keyed artifacts,
so reruns only do the work whose inputs changed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from volvid.contracts import (
    Cancelled,
    ConfigurationError,
    ContractViolation,
    ExternalFailure,
    StageError,
    VolvidError,
    assert_diced,
    require,
)
from volvid.frames.keys import ArtifactKeyer
from volvid.frames.naming import Artifact, ArtifactNamer
from volvid.frames.planner import ParameterPlanner
from volvid.pipeline.context import RunContext, RunResult
from volvid.schemas.internal import InternalConfig
from volvid.stages.executor import StageExecutor
from volvid.stages.tools import ImageToolkit, RenderEngine, VideoEncoder

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Runs the staged pipeline for one (query, measure) pair at a time.

    **Stages, in order:**

    1. **Plan**: build the ParameterSequence and the whole-run key. If the
       keyed video already exists the run ends here (full cache hit).
    2. **Render**: one volume per frame; existing frames are skipped
       individually.
    3. **Equalize** (``equalize.enabled``): join all frames into one slab,
       equalize the slab, dice it back and rename slice *i* to frame *i*'s
       keyed name. One histogram for the whole sequence keeps brightness
       consistent between frames.
    4. **Colormap** (``colormap.path``): remap each frame.
    5. **Aggregate**: min/max every current frame into RunStats. Never
       cached; it always reflects the artifacts on disk now.
    6. **NaN strip** (only if a frame reported non-finite values).
    7. **Quantize**: 8-bit image per frame over the global range.
    8. **Encode**: write the frame manifest and encode the video.
    9. **Cleanup** (unless ``cleanup.keep_intermediates``): delete every
       intermediate except stages listed in ``cleanup.keep_stages``.

    Stages 2-4 resume after the deepest one whose frames are all on disk:
    with every remapped frame present nothing is rendered, and with every
    equalized frame present only the colormap runs.

    **Errors:** any StageError, ConfigurationError, ContractViolation or
    OSError ends the current run with a failed (or cancelled) RunResult.
    Nothing propagates to the caller, so a batch moves on to the next pair.

    Parameters
    ----------
    config : InternalConfig
        Resolved runtime configuration.
    output_dirs : dict
        Directory map from ``setup_output_directories``; uses ``frames``
        and ``videos``.
    executor : StageExecutor, optional
        Created from config if omitted. Pass one with fake backends to test.
    keyer : ArtifactKeyer, optional
        Created from ``config.cache`` if omitted.

    Example usage::

        orch = PipelineOrchestrator(config, output_dirs)
        result = orch.run("val", "max")
        print(result.status, result.output)
    """

    def __init__(self, config: InternalConfig, output_dirs: dict,
                 executor: Optional[StageExecutor] = None,
                 keyer: Optional[ArtifactKeyer] = None):
        self.config = config
        self.output_dirs = {k: Path(v) for k, v in output_dirs.items()}
        self.executor = executor or StageExecutor.from_config(config)
        self.keyer = keyer or ArtifactKeyer.from_config(config)

        self.planner = ParameterPlanner(config)
        self.renderer = RenderEngine(config)
        self.toolkit = ImageToolkit(config)
        self.encoder = VideoEncoder(config)

        self.stem = Path(config.input).stem
        self.volume_ext = config.render.volume_ext
        self.workers = config.executor.workers

        for name in ("frames", "videos"):
            self.output_dirs[name].mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, query: str, measure: str) -> RunResult:
        """Run every stage for one pair and report the outcome."""
        calls_before = self.executor.invocations
        skips_before = self.executor.skips
        result = RunResult(query=query, measure=measure, status="failed")

        try:
            ctx = self._plan(query, measure)
            result.frames = len(ctx.frames)
            result.video_key = ctx.video.key

            if ctx.video.exists():
                logger.info("Skipped %s/%s: video exists", query, measure)
                result.status = "cached"
                result.output = ctx.video.path
            else:
                self._produce(ctx)
                result.status = "completed"
                result.output = ctx.video.path
            logger.info("Output: %s", result.output)

        except Cancelled as e:
            result.status = "cancelled"
            result.error = e.summary()
            logger.error("Run %s/%s cancelled:\n%s", query, measure, result.error)
        except StageError as e:
            result.error = e.summary()
            logger.error("Run %s/%s failed:\n%s", query, measure, result.error)
        except ContractViolation as e:
            result.error = f"Contract violation: {e}"
            logger.critical("Run %s/%s: pipeline contract violated: %s", query, measure, e)
        except (VolvidError, OSError) as e:
            result.error = f"{type(e).__name__}: {e}"
            logger.error("Run %s/%s failed: %s", query, measure, result.error)

        result.invocations = self.executor.invocations - calls_before
        result.skips = self.executor.skips - skips_before
        return result

    def _produce(self, ctx: RunContext) -> None:
        steps = {"render": self._render, "heq": self._equalize, "cmap": self._colormap}
        order = list(ctx.stages)
        start = 0
        for i in reversed(range(len(order))):
            if all(a.exists() for a in ctx.stages[order[i]]):
                ctx.current = ctx.stages[order[i]]
                start = i + 1
                logger.info("All %d %s frames present, resuming from there",
                            len(ctx.current), order[i])
                break
        for name in order[start:]:
            steps[name](ctx)

        self._aggregate(ctx)
        if ctx.stats.has_nan:
            self._strip_nan(ctx)
        images = self._quantize(ctx)
        self._encode(ctx, images)
        self._cleanup(ctx)

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------

    def _read_colormap(self):
        path = self.config.colormap.path
        if path is None:
            return None, None
        path = Path(path)
        try:
            return path, path.read_bytes()
        except OSError as e:
            raise ConfigurationError(f"Cannot read colormap {path}: {e}") from e

    def _plan(self, query: str, measure: str) -> RunContext:
        frames = self.planner.plan()
        colormap_path, colormap_content = self._read_colormap()
        keyer = self.keyer
        eq = self.config.equalize
        quant = self.config.quantize
        video_cfg = self.config.video

        sequence_key = keyer.key(list(frames))
        heq_token = False
        if eq.enabled:
            heq_token = keyer.key({
                "sequence": sequence_key,
                "bins": eq.bins,
                "smart": eq.smart,
                "amount": eq.amount,
            })

        video_key = keyer.key({
            "frames": list(frames),
            "heq": heq_token,
            "colormap": colormap_content,
            "bits": quant.bits,
            "nan_fill": quant.nan_fill,
            "fps": video_cfg.fps,
            "bitrate_factor": video_cfg.bitrate_factor,
            "codec": video_cfg.codec,
        })

        namer = ArtifactNamer(self.output_dirs["frames"], self.output_dirs["videos"],
                              self.stem, query, measure)
        ctx = RunContext(
            query=query,
            measure=measure,
            frames=frames,
            namer=namer,
            sequence_key=sequence_key,
            heq_token=heq_token,
            colormap_path=colormap_path,
            colormap_content=colormap_content,
            video=namer.video(video_key, video_cfg.extension),
        )

        ext = self.volume_ext
        ctx.stages["render"] = [
            namer.artifact("render", keyer.key({"frame": f, "query": query, "measure": measure}), ext)
            for f in frames
        ]
        if eq.enabled:
            ctx.stages["heq"] = [
                namer.artifact("heq", keyer.key({"frame": f, "heq": heq_token}), ext)
                for f in frames
            ]
        if colormap_path is not None:
            ctx.stages["cmap"] = [
                namer.artifact("cmap", keyer.key({"frame": f, "heq": heq_token, "colormap": colormap_content}), ext)
                for f in frames
            ]
        for artifacts in ctx.stages.values():
            ctx.track(*artifacts)

        logger.info("Run %s/%s: %d frames, video %s", query, measure, len(frames), ctx.video.path.name)
        return ctx

    def _for_each(self, fn: Callable, items: Iterable) -> list:
        """Apply ``fn`` per frame, on the worker pool when configured."""
        items = list(items)
        if self.workers <= 1 or len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(fn, items))

    # ------------------------------------------------------------------
    # Frame stages
    # ------------------------------------------------------------------

    def _render(self, ctx: RunContext) -> None:
        renders = ctx.stages["render"]

        def render_one(pair):
            frame, artifact = pair
            if not artifact.exists():
                logger.debug("Render %s/%s %s -> %s", ctx.query, ctx.measure, frame.describe(), artifact.path.name)
            invocation = self.renderer.render(frame, ctx.query, ctx.measure, artifact.path)
            return self.executor.run(artifact, invocation)

        self._for_each(render_one, zip(ctx.frames, renders))
        ctx.current = renders

    def _equalize(self, ctx: RunContext) -> None:
        equalized = ctx.stages["heq"]
        if all(a.exists() for a in equalized):
            logger.info("Skipped equalize: %d equalized frames exist", len(equalized))
            ctx.current = equalized
            return

        namer = ctx.namer
        slab = namer.artifact("slab", ctx.sequence_key, self.volume_ext)
        slab_heq = namer.artifact("slabheq", ctx.heq_token, self.volume_ext)
        ctx.track(slab, slab_heq)

        self.executor.run(slab, self.toolkit.join([a.path for a in ctx.current], slab.path))
        self.executor.run(slab_heq, self.toolkit.heq(slab.path, slab_heq.path))

        # Dice numbers its slices in slab order; slice i is frame i
        dice = self.toolkit.dice(slab_heq.path, namer.dice_prefix(ctx.heq_token), len(ctx.frames))
        self.executor.call(dice)
        slices = list(dice.outputs)
        assert_diced(slices, len(ctx.frames))
        for piece, target in zip(slices, equalized):
            piece.replace(target.path)
        logger.info("Equalized %d frames through slab %s", len(equalized), slab_heq.path.name)

        ctx.current = equalized

    def _colormap(self, ctx: RunContext) -> None:
        remapped = ctx.stages["cmap"]

        def remap_one(pair):
            source, artifact = pair
            invocation = self.toolkit.rmap(source.path, ctx.colormap_path, artifact.path)
            return self.executor.run(artifact, invocation)

        self._for_each(remap_one, zip(ctx.current, remapped))
        ctx.current = remapped

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def _aggregate(self, ctx: RunContext) -> None:
        def scan(artifact: Artifact):
            invocation = self.toolkit.minmax(artifact.path)
            output = self.executor.call(invocation)
            try:
                report = self.toolkit.parse_minmax(output.stdout)
            except ValueError as e:
                raise ExternalFailure("minmax", invocation.command(), output.diagnostics, str(e)) from e
            ctx.stats.fold(report)

        self._for_each(scan, ctx.current)
        require(
            ctx.stats.has_range,
            f"Aggregate contract violated: no finite values in {len(ctx.current)} frames"
        )
        logger.info("Range over %d frames: [%g, %g]%s", ctx.stats.observations,
                    ctx.stats.lo, ctx.stats.hi, " (non-finite values present)" if ctx.stats.has_nan else "")

    def _strip_nan(self, ctx: RunContext) -> None:
        logger.info("Replacing non-finite values with %g in %d frames",
                    self.config.quantize.nan_fill, len(ctx.current))
        self._for_each(lambda a: self.executor.call(self.toolkit.strip_nan(a.path)), ctx.current)

    def _quantize(self, ctx: RunContext) -> List[Artifact]:
        lo, hi = ctx.stats.range()
        quant = self.config.quantize
        images = [
            ctx.namer.artifact("quant", self.keyer.key({
                "frame": frame,
                "heq": ctx.heq_token,
                "colormap": ctx.colormap_content,
                "index": index,
                "range": [lo, hi],
                "bits": quant.bits,
                "nan_fill": quant.nan_fill,
            }), quant.image_ext)
            for index, frame in enumerate(ctx.frames)
        ]
        ctx.track(*images)

        def quantize_one(pair):
            source, image = pair
            return self.executor.run(image, self.toolkit.quantize(source.path, lo, hi, image.path))

        self._for_each(quantize_one, zip(ctx.current, images))
        return images

    # ------------------------------------------------------------------
    # Encode and cleanup
    # ------------------------------------------------------------------

    def _encode(self, ctx: RunContext, images: List[Artifact]) -> None:
        manifest = ctx.namer.artifact("manifest", ctx.video.key, "txt")
        ctx.track(manifest)
        self.encoder.write_manifest([a.path for a in images], manifest.path)
        invocation = self.encoder.encode(
            manifest.path, [a.path for a in images], ctx.frames[0].resolution, ctx.video.path
        )
        self.executor.run(ctx.video, invocation)

    def _cleanup(self, ctx: RunContext) -> None:
        cleanup = self.config.cleanup
        if cleanup.keep_intermediates:
            logger.info("Keeping %d intermediate artifacts", len(ctx.intermediates))
            return

        removed = 0
        for artifact in ctx.intermediates:
            if artifact.tag in cleanup.keep_stages:
                continue
            try:
                artifact.path.unlink()
                removed += 1
            except FileNotFoundError:
                logger.debug("Already gone: %s", artifact.path.name)
            except OSError as e:
                logger.warning("Could not delete %s: %s", artifact.path, e)
        logger.info("Removed %d intermediate artifacts", removed)

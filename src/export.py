"""
PNG export of a rendered Pareto chart.

The rendered chart (a plotly figure) is serialized to SVG markup, wrapped in
a base64 ``data:`` URI, decoded back and rasterized, then drawn at the
origin of a fixed 1200x600 white surface and saved as ``pareto-chart.png``.

Everything that touches a real renderer sits behind ``RenderTarget`` so the
pipeline itself can be driven by a fake in tests. The decode step is the only
suspension point: ``ChartExportPipeline.export`` is a coroutine and the
surface is only filled once ``RenderTarget.rasterize`` has completed.
"""

import asyncio
import base64
import binascii
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from PIL import Image as PILImage

from config import (
    EXPORT_BACKGROUND, EXPORT_DIR, EXPORT_FILENAME, EXPORT_HEIGHT, EXPORT_WIDTH,
)

logger = logging.getLogger(__name__)

SVG_DATA_URI_PREFIX = "data:image/svg+xml;base64,"


# --------------------------
# Errors
# --------------------------
class ExportError(Exception):
    """Base class for everything that can stop an export."""
    kind = "ExportError"


class NoSceneError(ExportError):
    kind = "NoScene"


class DecodeFailedError(ExportError):
    kind = "DecodeFailed"


class AlreadyInProgressError(ExportError):
    kind = "AlreadyInProgress"


class ExportState(Enum):
    IDLE = "idle"
    SERIALIZING = "serializing"
    RASTERIZING = "rasterizing"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    width: int
    height: int
    data: bytes = field(repr=False)


# --------------------------
# Data URI helpers
# --------------------------
def encode_data_uri(markup: str) -> str:
    """Embed SVG markup as a self-contained base64 data URI (UTF-8 encoded)."""
    payload = base64.b64encode(markup.encode("utf-8")).decode("ascii")
    return SVG_DATA_URI_PREFIX + payload


def decode_data_uri(data_uri: str) -> bytes:
    """Return the raw SVG bytes embedded in ``data_uri``."""
    if not isinstance(data_uri, str) or not data_uri.startswith(SVG_DATA_URI_PREFIX):
        raise DecodeFailedError("Not a base64 SVG data URI")
    try:
        return base64.b64decode(data_uri[len(SVG_DATA_URI_PREFIX):], validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailedError(f"Invalid base64 payload: {e}") from e


# --------------------------
# Render targets
# --------------------------
class RenderTarget(ABC):
    """The three things the pipeline needs from a rendering environment."""

    @abstractmethod
    def serialize_scene(self, scene) -> str:
        """Serialize the rendered scene to vector markup. Raise NoSceneError if there is none."""

    @abstractmethod
    async def rasterize(self, data_uri: str) -> PILImage.Image:
        """Decode the vector resource into a bitmap. Raise DecodeFailedError on bad content."""

    @abstractmethod
    def save_bitmap(self, filename: str, data: bytes) -> None:
        """Hand the encoded image to the user."""


class KaleidoRenderTarget(RenderTarget):
    """
    Plotly figures serialized through kaleido, SVG rasterized with cairosvg,
    PNG files written to ``output_dir``.
    """

    def __init__(self, output_dir: Union[str, Path, None] = None):
        self.output_dir = Path(output_dir) if output_dir is not None else EXPORT_DIR

    def serialize_scene(self, scene) -> str:
        if scene is None:
            raise NoSceneError("No chart has been rendered yet")
        svg = scene.to_image(format="svg", width=EXPORT_WIDTH, height=EXPORT_HEIGHT)
        if isinstance(svg, bytes):
            svg = svg.decode("utf-8")
        return svg

    async def rasterize(self, data_uri: str) -> PILImage.Image:
        markup = decode_data_uri(data_uri)
        import cairosvg  # needs the native cairo library, only loaded when rasterizing

        try:
            png = cairosvg.svg2png(bytestring=markup)
            image = PILImage.open(io.BytesIO(png))
            image.load()
        except Exception as e:
            raise DecodeFailedError(f"Could not rasterize chart markup: {e}") from e
        return image

    def save_bitmap(self, filename: str, data: bytes) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(data)
        logger.info("Saved chart image to %s", path)


# --------------------------
# Pipeline
# --------------------------
def compose_png(image: PILImage.Image, width: int = EXPORT_WIDTH, height: int = EXPORT_HEIGHT) -> bytes:
    """Draw ``image`` at (0, 0) on a white surface of fixed size and encode it as PNG."""
    surface = PILImage.new("RGB", (width, height), EXPORT_BACKGROUND)
    rgba = image.convert("RGBA")
    surface.paste(rgba, (0, 0), rgba)
    buf = io.BytesIO()
    surface.save(buf, format="PNG")
    return buf.getvalue()


class ChartExportPipeline:
    """
    Single-shot export: IDLE -> SERIALIZING -> RASTERIZING -> IDLE, or FAILED.

    A second export started while one is still serializing or rasterizing is
    rejected with AlreadyInProgressError. After a failure the next export
    starts over; nothing is retried.
    """

    def __init__(self, target: RenderTarget):
        self.target = target
        self._state = ExportState.IDLE

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._state in (ExportState.SERIALIZING, ExportState.RASTERIZING)

    def _set_state(self, state: ExportState) -> None:
        logger.debug("Export state %s -> %s", self._state.value, state.value)
        self._state = state

    async def export(self, scene) -> ExportArtifact:
        if self.in_progress:
            raise AlreadyInProgressError("A chart export is already in progress")

        self._set_state(ExportState.SERIALIZING)
        try:
            if scene is None:
                raise NoSceneError("No chart has been rendered yet; generate one first")
            markup = self.target.serialize_scene(scene)
            if not markup:
                raise NoSceneError("The rendered chart is empty")
            data_uri = encode_data_uri(markup)

            self._set_state(ExportState.RASTERIZING)
            decoded = await self.target.rasterize(data_uri)
            png = compose_png(decoded)
            self.target.save_bitmap(EXPORT_FILENAME, png)
            self._set_state(ExportState.IDLE)
        except ExportError as e:
            self._set_state(ExportState.FAILED)
            logger.warning("Chart export failed (%s): %s", e.kind, e)
            raise
        except Exception:
            self._set_state(ExportState.FAILED)
            logger.exception("Chart export failed")
            raise
        finally:
            # cancelled mid-flight
            if self.in_progress:
                self._set_state(ExportState.FAILED)

        logger.info("Exported %s (%dx%d, %d bytes)", EXPORT_FILENAME, EXPORT_WIDTH, EXPORT_HEIGHT, len(png))
        return ExportArtifact(filename=EXPORT_FILENAME, width=EXPORT_WIDTH, height=EXPORT_HEIGHT, data=png)


def export_chart(scene, pipeline: Optional[ChartExportPipeline] = None) -> ExportArtifact:
    """Blocking wrapper around ``ChartExportPipeline.export`` for synchronous callers."""
    pipeline = pipeline or ChartExportPipeline(KaleidoRenderTarget())
    return asyncio.run(pipeline.export(scene))

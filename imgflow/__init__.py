"""Design document.

Abstractions related to image content:

Surface - A mutable raster: width, height and BGRA pixels held in a
          numpy array. Every operation takes a Surface and builds a new
          one; whichever stage holds a Surface owns it, and it is never
          shared after it has been handed on.

LoadResult - What a loader produces: the Surface plus the filename and
          EXIF tags of the source, either of which may be missing.

Abstractions related to image processing:

Task -  One queued, deferred operation, tagged with its kind: LOADER,
        MANIPULATION, FILTER or DRAW. Loaders take no input; the
        others take the current Surface. An operation may be a plain
        function or a coroutine function.

Pipeline - Holds the queue of Tasks. Builder methods (resize, crop,
        to_grayscale, draw_text, ...) queue tasks and return the
        pipeline. flush() runs the queue in order, one task at a time,
        and remembers the last Surface it produced so the pipeline can
        be exported again. The save_as_* coroutines flush and then hand
        the Surface to an exporter.

Loaders and exporters - The boundary with the outside world: files and
        bytes in, Blobs, Surfaces and data: URIs out.

"""

from .errors import (ImgflowError, PipelineNotLoaded, InvalidDimensions, CropOutOfBounds,
                     InvalidPerspectivePoints, LoaderFailure, ExporterFailure)
from .surface import Surface
from .task import Task, TaskKind
from .transform import ResizeMode
from .draw import TextStyle
from .loader import LoaderOptions, LoadResult
from .exporter import Blob
from .pipeline import Pipeline

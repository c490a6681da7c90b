"""
Pipeline: queues typed tasks and runs them, in order, when an export is requested.
"""

import sys
import logging

from . import transform, filters, draw, loader, exporter
from .constants import C
from .errors import PipelineNotLoaded, LoaderFailure
from .task import Task, TaskKind, TaskStats
from .transform import ResizeMode


logger = logging.getLogger(__name__)

class Pipeline:
    """Lazy image pipeline.

    Builder methods queue tasks and return the pipeline so calls can be chained.
    Nothing runs until flush(), which the save_as_* coroutines call first:

        blob = await Pipeline().load_blob(path).to_square(150).to_grayscale().save_as_blob()

    The pipeline can be exported again, or extended with more tasks, after a flush.
    """
    def __init__(self, verbose=False, debug=False):
        self._tasks          = []
        self._canvas         = None     # working surface; result of the latest non-loader task
        self._loaded_canvas  = None     # set by loader tasks
        self._last_canvas    = None     # sticky; survives flushes that produce nothing
        self._file_name      = C.DEFAULT_FILENAME
        self._exif           = {}
        self.stats = {kind:TaskStats() for kind in TaskKind}
        self.verbose = verbose
        self.debug   = debug
        if debug:
            logger.setLevel(logging.DEBUG)
        elif verbose:
            logger.setLevel(logging.INFO)
        else:
            logger.setLevel(logging.WARNING)

    def __repr__(self):
        return f"<Pipeline tasks={len(self._tasks)} canvas={self.get_canvas()} file_name={self._file_name}>"

    @property
    def tasks(self):
        """The queued tasks, in execution order"""
        return tuple(self._tasks)

    def enqueue(self, kind:TaskKind, operation):
        self._tasks.append(Task(kind, operation))
        return self

    ## loaders

    def load_blob(self, image_file, options=None):
        """:param options: LoaderOptions or a dict with fix_orientation and read_exif"""
        return self.enqueue(TaskKind.LOADER, loader.load_blob(image_file, options))

    def load_canvas(self, canvas, file_name=C.CANVAS_FILENAME):
        return self.enqueue(TaskKind.LOADER, loader.load_canvas(canvas, file_name))

    ## manipulations

    def _image_resize(self, max_width=C.RESIZE_WIDTH, max_height=C.RESIZE_HEIGHT, mode=ResizeMode.TO, **opts):
        return self.enqueue(TaskKind.MANIPULATION, transform.resize(max_width, max_height, mode, **opts))

    def to_square(self, length=C.SQUARE_LENGTH, **opts):
        return self._image_resize(length, length, ResizeMode.SQUARE, **opts)

    def resize(self, max_width=C.RESIZE_WIDTH, max_height=C.RESIZE_HEIGHT, **opts):
        """Scale down, keeping the aspect ratio. Landscape images are bounded by
        max_width, others by max_height. opts: enlarge, interpolation"""
        return self._image_resize(max_width, max_height, ResizeMode.TO, **opts)

    def crop(self, max_width, max_height, offset_x=None, offset_y=None):
        """Offsets that are not given center the crop in the source"""
        return self.enqueue(TaskKind.MANIPULATION, transform.crop(max_width, max_height, offset_x, offset_y))

    def rotate(self, degrees, **opts):
        """opts: width, height, background"""
        return self.enqueue(TaskKind.MANIPULATION, transform.rotate(degrees, **opts))

    def center_in_rectangle(self, width=C.RESIZE_WIDTH, height=C.RESIZE_HEIGHT, *, background=C.TRANSPARENT, **opts):
        self._image_resize(width, height, ResizeMode.TO, **opts)
        return self.enqueue(TaskKind.MANIPULATION, transform.center_in_rectangle(width, height, background=background))

    def to_circle(self, diameter=C.CIRCLE_DIAMETER, *, background=C.TRANSPARENT, **opts):
        self._image_resize(diameter, diameter, ResizeMode.SQUARE, **opts)
        return self.enqueue(TaskKind.MANIPULATION, transform.circle(diameter, background=background))

    def perspective(self, points):
        """:param points: {'xy0': [x,y], 'xy1':..., 'xy2':..., 'xy3':...} or four [x,y] pairs"""
        return self.enqueue(TaskKind.MANIPULATION, transform.perspective(points))

    ## filters

    def to_grayscale(self, **opts):
        return self.enqueue(TaskKind.FILTER, filters.grayscale(**opts))

    def pixelize(self, threshold=C.PIXELIZE_THRESHOLD):
        return self.enqueue(TaskKind.FILTER, filters.pixelize(threshold))

    def gaussian_blur(self, radius=C.BLUR_RADIUS):
        return self.enqueue(TaskKind.FILTER, filters.gaussian_blur(radius))

    ## drawing

    def draw_line(self, points=(), fill=C.DRAW_FILL, width=C.DRAW_WIDTH):
        """:param points: [[x0, y0], [x1, y1] ...] or [x0, y0, x1, y1 ...]"""
        return self.enqueue(TaskKind.DRAW, draw.draw_line(points, fill, width))

    def draw_polygon(self, points=(), fill=C.DRAW_FILL, outline=C.DRAW_OUTLINE, outline_width=C.DRAW_WIDTH):
        return self.enqueue(TaskKind.DRAW, draw.draw_polygon(points, fill, outline, outline_width))

    def draw_rectangle(self, points=(), fill=None, outline=C.DRAW_OUTLINE, outline_width=C.DRAW_WIDTH):
        """:param points: [[left, bottom], [right, top]] or [left, bottom, right, top]"""
        return self.enqueue(TaskKind.DRAW, draw.draw_rectangle(points, fill, outline, outline_width))

    def draw_text(self, xy=(), text='', style=None):
        """:param style: TextStyle or dict with font, font_size, fill, fill_padding, background, angle"""
        return self.enqueue(TaskKind.DRAW, draw.draw_text(xy, text, style))

    ## running

    async def _run_task(self, task:Task):
        if task.kind is TaskKind.LOADER:
            try:
                data = await task.run()
            except LoaderFailure:
                raise
            except Exception as e:
                raise LoaderFailure(f"{task.name}: {e}") from e
            (self._loaded_canvas, file_name, exif) = data
            if file_name:
                self._file_name = file_name
            if exif is not None:
                self._exif = exif
            return

        source = self._canvas if self._canvas is not None else self._loaded_canvas
        if source is None:
            raise PipelineNotLoaded("use load_blob first")
        self._canvas = await task.run(source)

    async def flush(self):
        """Run every queued task in order. The queue is emptied whether or not they succeed."""
        tasks, self._tasks = self._tasks, []
        self._canvas = None
        logger.info("== flush %d tasks", len(tasks))
        done = 0
        try:
            for task in tasks:
                logger.debug("<%s> input %s", task, self._canvas or self._loaded_canvas)
                with self.stats[task.kind].timer():
                    await self._run_task(task)
                done += 1
        except Exception:
            logger.info("flush failed at task %d; %d tasks discarded", done, len(tasks) - done - 1)
            self._canvas = None
            raise
        if self._canvas is not None:
            self._last_canvas = self._canvas
        return self

    def print_stats(self, out=sys.stdout):
        for (kind, stats) in self.stats.items():
            if stats.count:
                print(f"{kind.value}: calls: {stats.count}  mean: {stats.t_mean:.2}s  stddev: {stats.t_stddev:.2}",
                      file=out)

    ## metadata

    def get_canvas(self):
        """The surface an exporter consumes: the working surface, else the last one, else None"""
        return self._canvas if self._canvas is not None else self._last_canvas

    def get_file_name(self):
        return self._file_name

    def set_file_name(self, new_file_name):
        """:param new_file_name: name used for blobs; its extension follows the export mime type"""
        self._file_name = new_file_name
        return self

    def get_exif(self):
        return self._exif

    ## exports

    async def save_as_blob(self, mime_type=C.DEFAULT_MIME_TYPE, q=C.DEFAULT_QUALITY):
        await self.flush()
        return exporter.as_blob(self.get_canvas(), self.get_file_name(), mime_type, q)

    async def save_as_canvas(self):
        await self.flush()
        return exporter.as_canvas(self.get_canvas())

    async def save_as_image(self, mime_type=C.DEFAULT_MIME_TYPE, q=C.DEFAULT_QUALITY):
        await self.flush()
        return exporter.as_image(self.get_canvas(), mime_type, q)

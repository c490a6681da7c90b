"""
Errors raised by imgflow.
All of them are raised while a pipeline is flushed, never when a task is enqueued.
"""

class ImgflowError(RuntimeError):
    """Base class for imgflow errors"""

class PipelineNotLoaded(ImgflowError):
    """A manipulation, filter or draw task ran before any loader produced a surface"""

class InvalidDimensions(ImgflowError, ValueError):
    """Non-positive or nonsensical size parameters"""

class CropOutOfBounds(ImgflowError, ValueError):
    """Requested crop rectangle exceeds the source"""

class InvalidPerspectivePoints(ImgflowError, ValueError):
    """Malformed or degenerate perspective corners"""

class LoaderFailure(ImgflowError):
    """The image source could not be read or decoded"""

class ExporterFailure(ImgflowError):
    """The surface could not be encoded"""

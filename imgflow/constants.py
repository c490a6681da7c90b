"""Constants"""

# pylint: disable=too-few-public-methods
class C:
    """Constants"""
    DEFAULT_FILENAME  = 'image.jpg'
    CANVAS_FILENAME   = 'canvas.png'
    DEFAULT_MIME_TYPE = 'image/jpeg'
    DEFAULT_QUALITY   = '1.0'

    # builder defaults
    RESIZE_WIDTH  = 200
    RESIZE_HEIGHT = 100
    SQUARE_LENGTH = 150
    CIRCLE_DIAMETER = 150
    PIXELIZE_THRESHOLD = 0.2
    BLUR_RADIUS = 10

    # draw defaults
    DRAW_FILL    = 'green'
    DRAW_OUTLINE = 'red'
    DRAW_WIDTH   = 6
    TEXT_FONT    = 'sans-serif 16px'
    TEXT_BACKGROUND = 'white'

    # Encoders we can write, and the extension that goes with each
    MIME_EXTENSIONS = {'image/jpeg':'.jpg',
                       'image/png':'.png',
                       'image/webp':'.webp',
                       'image/bmp':'.bmp'}
    FALLBACK_MIME_TYPE = 'image/png'

    # RGBA. Colors are converted to BGRA when parsed.
    TRANSPARENT = (0,0,0,0)
    NAMED_COLORS = {
        'black':  (0,0,0,255),
        'white':  (255,255,255,255),
        'red':    (255,0,0,255),
        'green':  (0,128,0,255),
        'lime':   (0,255,0,255),
        'blue':   (0,0,255,255),
        'yellow': (255,255,0,255),
        'cyan':   (0,255,255,255),
        'magenta':(255,0,255,255),
        'orange': (255,165,0,255),
        'purple': (128,0,128,255),
        'gray':   (128,128,128,255),
        'grey':   (128,128,128,255),
        'silver': (192,192,192,255),
        'navy':   (0,0,128,255),
        'transparent': TRANSPARENT,
    }

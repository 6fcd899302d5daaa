"""
Error taxonomy for the thumbnail pipeline.

Everything except UsageError and FallbackError is caught by the pipeline
and turned into a fallback thumbnail.
"""

from enum import Enum


class ThumbnailerError(Exception):
    """Base class for all thumbnailer errors"""


class UsageError(ThumbnailerError):
    """Bad command line; fatal, no fallback is attempted"""


class EntryError(ThumbnailerError):
    """Desktop file missing, unreadable, unparseable or without Icon="""


class ResolutionError(ThumbnailerError):
    """No icon file found in any search tier"""


class RenderFailure(Enum):
    """Why rendering a resolved icon failed"""
    READ_FAILED = "read_failed"
    PARSE_FAILED = "parse_failed"
    DECODE_FAILED = "decode_failed"
    UNSUPPORTED_COLOR_TYPE = "unsupported_color_type"
    UNSUPPORTED_FORMAT = "unsupported_format"
    ENCODE_FAILED = "encode_failed"
    WRITE_FAILED = "write_failed"


class RenderError(ThumbnailerError):
    def __init__(self, reason: RenderFailure, message: str):
        super().__init__(message)
        self.reason = reason

    def __str__(self):
        return f"{self.reason.value}: {self.args[0]}"


class FallbackError(ThumbnailerError):
    """The generic fallback icon could not be found or rendered"""

"""Custom exceptions for projection, depth decoding and track fusion."""


class GeoTrackError(Exception):
    """Base geotrack exception."""


class InvalidArgumentError(GeoTrackError, ValueError):
    """Raised when a numeric parameter is outside its allowed domain."""


class OutOfRangeError(GeoTrackError, IndexError):
    """Raised when a depth sample lies outside the buffer bounds."""


class MalformedInputError(GeoTrackError, ValueError):
    """Raised when a degree-minutes value is not in DDMM.mmmm form."""


class DidNotConvergeError(GeoTrackError):
    """Raised when the inverse projection exhausts its iteration budget."""


class TrackNotFoundError(GeoTrackError, KeyError):
    """Raised when a lifecycle transition references a track with no prior state."""


class DuplicateTrackError(GeoTrackError):
    """Raised when the same track id is observed twice within one frame."""


class FrameNotFoundError(GeoTrackError, KeyError):
    """Raised when the detection feed has no record for the requested frame."""


class PipelineBusyError(GeoTrackError):
    """Raised when an ingestion tick starts while another is still in flight."""

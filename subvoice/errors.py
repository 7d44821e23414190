"""Exception types raised by the rendering pipeline."""


class SubvoiceError(Exception):
    """Base class for every fatal pipeline error."""


class ConfigError(SubvoiceError):
    """Malformed or incomplete configuration / voice table."""


class ParseError(SubvoiceError):
    """Subtitle source could not be read or parsed."""


class SynthesisError(SubvoiceError):
    """TTS service failure, or a clip that could not be persisted."""


class CodecError(SubvoiceError):
    """A clip file is unreadable, corrupt or in an unsupported format."""


class OverlapError(SubvoiceError):
    """Same-voice clips overlap in time; the operator must fix the timings."""

    def __init__(self, overlaps):
        self.overlaps = list(overlaps)
        super().__init__(f"{len(self.overlaps)} overlapping line(s) detected")

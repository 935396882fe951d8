"""Error kinds surfaced by conversion and export."""


class InvalidInput(ValueError):
    """Request input missing, not a string, or blank. Never retried."""


class ConversionUnavailable(RuntimeError):
    """The conversion batch failed and no fallback was applied."""


class CompilationFailed(RuntimeError):
    """TeX compilation failed; log_tail holds the end of the compiler log."""

    def __init__(self, message, log_tail=''):
        super().__init__(message)
        self.log_tail = log_tail

class PipelineError(Exception):
    """A failure that escaped every stage boundary."""


class InvalidQueryError(PipelineError, ValueError):
    pass


class PipelineTimeoutError(PipelineError, TimeoutError):
    pass

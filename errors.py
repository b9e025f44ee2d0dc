class AnalysisError(Exception):
    """Base class for request-scoped failures of the analysis endpoint."""


class ValidationError(AnalysisError):
    # required quiz field missing -> 400, no model call
    pass


class ExternalServiceError(AnalysisError):
    # Gemini call failed (network, auth, quota, blocked response)
    pass


class ParseError(AnalysisError):
    # model output could not be turned into a JSON object
    pass

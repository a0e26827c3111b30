from typing import Any, Dict, Optional


SERVER_ADVICE = "Please Contact Backend Developer Its an Server Error"


class PipelineError(Exception):
    """Base error for every failure surfaced to an HTTP caller.

    Carries the stage it happened in, the HTTP status to answer with and the
    advisory text telling the caller whether to fix the input or to contact
    the backend operator.
    """

    status_code = 500
    default_message = "Server error"
    default_advice = SERVER_ADVICE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        stage: str = "",
        advice: Optional[str] = None,
        error: Optional[str] = None,
        **extra: Any,
    ):
        self.message = message or self.default_message
        self.stage = stage
        self.advice = advice or self.default_advice
        self.error = error
        self.extra = extra
        super().__init__(self.message)

    def to_envelope(self) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {
            "status": False,
            "message": self.message,
            "advice": self.advice,
            "stage": self.stage,
        }
        if self.error:
            envelope["error"] = self.error
        envelope.update(self.extra)
        return envelope


class InputInvalid(PipelineError):
    status_code = 400
    default_message = "News Text is Required"
    default_advice = "Please send the news text in the 'text' field"


class DownstreamUnavailable(PipelineError):
    """Both the in-process and the network path of a capability failed."""

    default_message = "Downstream capability unavailable"
    default_advice = "Please contact Backend Developer - API call failed"


class ShapeMismatch(PipelineError):
    """A capability answered, but not with the expected status/data contract."""

    default_message = "Unexpected response from downstream capability"


class NoAnalysisAvailable(PipelineError):
    status_code = 400
    default_message = "No analysis available"
    default_advice = "Please analyze a news article first"


class SpeechGenerationFailed(PipelineError):
    default_message = "Speech generation failed"


class AudioSynthesisFailed(PipelineError):
    default_message = "Audio generation failed"

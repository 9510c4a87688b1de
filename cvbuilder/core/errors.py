"""
Error taxonomy for the CV builder.

Every error carries the HTTP status the API should answer with and the
message that is safe to show to the client. Detailed causes stay in the
exception text and the logs.
"""


class CVBuilderError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)

    @property
    def client_message(self) -> str:
        return self.public_message


class SessionNotFound(CVBuilderError):
    status_code = 404
    public_message = "Session not found"


class SessionNotInitialized(CVBuilderError):
    status_code = 400
    public_message = "Assistant not initialized"


class CVNotReady(CVBuilderError):
    status_code = 400
    public_message = "CV data not found"


class InvalidFilename(CVBuilderError):
    status_code = 400
    public_message = "Invalid filename"


class FileNotFound(CVBuilderError):
    status_code = 404
    public_message = "File not found"


class AssistantGatewayError(CVBuilderError):
    status_code = 502
    public_message = "Failed to process message"


class AssistantRunFailed(AssistantGatewayError):
    public_message = "Assistant run failed"


class TurnTimeout(AssistantGatewayError):
    status_code = 504
    public_message = "Assistant did not respond in time"


class TurnCancelled(AssistantGatewayError):
    status_code = 503
    public_message = "Assistant turn was cancelled"


class RenderError(CVBuilderError):
    status_code = 500
    public_message = "Failed to generate PDF"

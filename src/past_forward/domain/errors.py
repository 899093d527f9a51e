"""Error taxonomy and user-facing error messages."""


class PastForwardError(Exception):
    """Base class for application errors."""


class InvalidInputError(PastForwardError, ValueError):
    """Raised for malformed images, instructions or decade selections."""


class GenerationServiceError(PastForwardError):
    """Raised when the generation service fails with a non-retryable error."""


class NoImageReturnedError(PastForwardError):
    """Raised when the model answers with text instead of an image."""

    def __init__(self, text: str | None) -> None:
        self.text = text or ""
        super().__init__(
            "The model responded with text instead of an image: "
            f"{self.text or 'no text response received'}"
        )


class GenerationExhaustedError(PastForwardError):
    """Raised when transient failures persist through every retry."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Generation failed after {attempts} attempts: {last_error}"
        )


class GenerationFailedError(PastForwardError):
    """Raised when both the primary and the fallback prompt failed."""

    def __init__(self, primary: BaseException, fallback: BaseException) -> None:
        self.primary = primary
        self.fallback = fallback
        super().__init__(
            "Generation failed with both primary and fallback prompts. "
            f"Last error: {fallback}"
        )


class EditFailedError(PastForwardError):
    """Raised when an image edit could not be completed."""


class AudioGenerationError(PastForwardError):
    """Raised when narration script or speech synthesis fails."""


class VideoGenerationError(PastForwardError):
    """Raised when video generation or download fails."""


class VideoCredentialsError(VideoGenerationError):
    """Raised when the video service rejects the configured credentials."""


class IncompleteBatchError(PastForwardError):
    """Raised when an album export is attempted before every decade is done."""

    def __init__(self, unfinished: list[str]) -> None:
        self.unfinished = unfinished
        super().__init__(
            "Album export requires every requested decade to be done; "
            f"unfinished: {', '.join(unfinished)}"
        )


class SessionPersistenceError(PastForwardError):
    """Raised when a session record cannot be created."""


class SessionNotFoundError(PastForwardError, LookupError):
    """Raised when a session id is unknown."""


SAFETY_FILTER_MESSAGE = (
    "The AI couldn't create an image, possibly due to safety filters. "
    "Try a different photo or decade."
)
MULTIPLE_ATTEMPTS_MESSAGE = (
    "The AI failed after multiple attempts. "
    "Please try again later or with a different photo."
)
TRANSIENT_MESSAGE = (
    "The image service is having temporary trouble. Please try again later."
)
SERVICE_MESSAGE = (
    "An unexpected error occurred during generation. "
    "Please check your connection and try again."
)
INVALID_INPUT_MESSAGE = "That photo couldn't be read. Please upload a JPEG, PNG or WebP."
EDIT_MESSAGE = "The edit couldn't be applied. Try rephrasing your instruction."
AUDIO_MESSAGE = "The narration couldn't be created. Please try again."
VIDEO_MESSAGE = "The video couldn't be created. Please try again."
CREDENTIALS_MESSAGE = (
    "Video generation was rejected for your API key. "
    "Please select your API key again."
)
INTERRUPTED_MESSAGE = "Generation was interrupted. Please regenerate this decade."
UNKNOWN_MESSAGE = "An unknown error occurred. Please try again."


def user_message(exc: BaseException) -> str:  # noqa: PLR0911
    """Map an exception to a short user-facing message category."""
    if isinstance(exc, GenerationFailedError):
        return MULTIPLE_ATTEMPTS_MESSAGE
    if isinstance(exc, NoImageReturnedError):
        return SAFETY_FILTER_MESSAGE
    if isinstance(exc, GenerationExhaustedError):
        return TRANSIENT_MESSAGE
    if isinstance(exc, GenerationServiceError):
        return SERVICE_MESSAGE
    if isinstance(exc, InvalidInputError):
        return INVALID_INPUT_MESSAGE
    if isinstance(exc, EditFailedError):
        return EDIT_MESSAGE
    if isinstance(exc, AudioGenerationError):
        return AUDIO_MESSAGE
    if isinstance(exc, VideoCredentialsError):
        return CREDENTIALS_MESSAGE
    if isinstance(exc, VideoGenerationError):
        return VIDEO_MESSAGE
    return UNKNOWN_MESSAGE

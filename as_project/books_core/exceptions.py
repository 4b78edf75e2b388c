
class ConcurrentUpdateError(Exception):
    """Raised when a row changed between read and write (stale version)."""

    def __init__(self, model_name, pk, expected_version):
        self.model_name = model_name
        self.pk = pk
        self.expected_version = expected_version
        super().__init__(
            f"{model_name}({pk}) was modified concurrently "
            f"(expected version {expected_version})"
        )


class BusinessScopeError(Exception):
    """Raised when an object does not belong to the caller's business."""
    pass


class AssistantNotConfigured(Exception):
    """Raised when the business has no chat-completion API key."""
    pass


class RateLimitExceeded(Exception):
    """Raised when a user exhausted the assistant requests for the window."""

    def __init__(self, limit, window):
        self.limit = limit
        self.window = window
        super().__init__(f"Rate limit of {limit} requests per {window} reached")


class ChatCompletionError(Exception):
    """Raised when the chat-completion endpoint failed after all retries."""
    pass

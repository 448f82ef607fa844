class AgentError(Exception):
    """Base error for the automation pipeline."""


class AIProviderError(AgentError):
    """An AI backend call failed. `detail` carries the upstream body/message."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} AI error: {detail}")


class OrderValidationError(AgentError):
    pass

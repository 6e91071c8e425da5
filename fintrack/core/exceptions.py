"""Exception hierarchy shared by the sync jobs, the dispatcher and the webhook."""

from typing import Optional


class ProviderError(Exception):
    """A market-data or news provider call failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderRateLimitError(ProviderError):
    """Provider answered 429. Transient: the item is retried on the next run."""


class ProviderPayloadError(ProviderError):
    """Provider answered with a partial or malformed payload."""


class PushDeliveryError(Exception):
    """Push provider rejected or failed a send."""


class TokenInvalidError(PushDeliveryError):
    """The device token is no longer registered with the push provider."""

    def __init__(self, token: str, message: Optional[str] = None):
        self.token = token
        super().__init__(message or "registration-token-not-registered")


class WebhookError(Exception):
    """Base class for rejected webhook deliveries."""

    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class WebhookHeaderError(WebhookError):
    status_code = 400
    message = "Invalid signature header"


class WebhookSignatureError(WebhookError):
    status_code = 401
    message = "Invalid signature"


class WebhookPayloadError(WebhookError):
    status_code = 400
    message = "Invalid payload"


class SubscriberNotFoundError(Exception):
    """Webhook names a user that has not signed in yet; the provider retries later."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")

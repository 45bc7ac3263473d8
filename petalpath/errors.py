class StylistError(Exception):
    """Base class for failures talking to the generative backend."""

    user_message = "Something went wrong. Please check your internet and try again."

    def __init__(self, detail: str = "", user_message: str = None):
        super().__init__(detail or self.user_message)
        if user_message:
            self.user_message = user_message


class ServiceNotConfigured(StylistError):
    user_message = "The AI stylist is not configured right now."


class NoResponseError(StylistError):
    """The backend returned no text payload for a structured request."""

    user_message = "The stylist did not answer. Please try again."


class MalformedResponseError(StylistError):
    """The text payload was not valid JSON or lacked required fields."""

    user_message = "Invalid data format received from stylist."


class IllustrationUnavailable(StylistError):
    # Never propagates past request_illustration
    user_message = "No illustration could be generated."

"""
Service Errors

Exception taxonomy shared by the planner services. Each error carries the
HTTP status the API layer answers with.
"""


class MealPlannerError(Exception):
    """Base class for expected planner failures."""
    status_code = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message}
        payload.update(self.details)
        return payload


class InvalidInput(MealPlannerError):
    """Malformed date, out-of-range mealsPerDay, malformed search query."""
    status_code = 400


class MissingConfiguration(MealPlannerError):
    """Required configuration (macro profile, API credentials) does not exist."""
    status_code = 404


class ConstraintViolation(MealPlannerError):
    """A generated plan breaks the user's exclusions. Nothing is persisted."""
    status_code = 400

    def __init__(self, message, **details):
        details.setdefault('suggestion', 'Try regenerating the meal plan or adjust your exclusions')
        super().__init__(message, **details)


class NotFound(MealPlannerError):
    """Requested plan or recipe id does not exist."""
    status_code = 404


class UpstreamTransient(MealPlannerError):
    """Rate limit or network failure from an external provider, after retries."""
    status_code = 503

    def __init__(self, message, **details):
        details.setdefault('retryAfter', 60)
        super().__init__(message, **details)


class GenerationInvalid(MealPlannerError):
    """The AI provider answered with a plan that does not fit the day/meal schema."""
    status_code = 502

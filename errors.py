# ABOUTME: Exception types shared by the forecast pipeline and the HTTP layer
# ABOUTME: Each error maps to one HTTP status in main.py


class WeatherServiceError(Exception):
    """Base class for errors raised by the weather service"""

    status_code = 500
    error = 'Server error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {'error': self.error, 'message': self.message}


class ValidationError(WeatherServiceError):
    """Bad or out-of-range client input"""

    status_code = 400
    error = 'Invalid request'

    def __init__(self, message: str, error: str | None = None, status_code: int = 400):
        super().__init__(message)
        if error:
            self.error = error
        self.status_code = status_code


class UpstreamTransportError(WeatherServiceError):
    """Network failure, timeout or error status from a third-party API"""

    status_code = 503
    error = 'Failed to fetch weather data'


class DecodeError(WeatherServiceError):
    """Upstream answered with a body we cannot use"""

    status_code = 500
    error = 'Invalid upstream response'


class ReportGenerationError(WeatherServiceError):
    """The AI collaborator could not produce a detailed report"""

    status_code = 500
    error = 'Failed to generate report'

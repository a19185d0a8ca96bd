"""Error payloads for data-access failures surfaced through Flask views."""


def error_response(message: str, error_code: str = "DAO_ERROR", status_code: int = 500):
    """Return a standardised error dict with HTTP status code."""
    return {
        "status": "error",
        "error_code": error_code,
        "message": message,
    }, status_code

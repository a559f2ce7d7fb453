class UserResourceError(Exception):
    """Known failure of a user resource operation, rendered as a 4xx envelope."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(UserResourceError):
    status_code = 400


class NotFoundError(UserResourceError):
    status_code = 404


class ConflictError(UserResourceError):
    status_code = 400

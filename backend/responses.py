from typing import Any, Dict, Optional

from flask import jsonify


class ApiResponse:
    def __init__(self, status_code: int, data: Any = None, message: str = "Success"):
        self.status_code = status_code
        self.data = data
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "data": self.data,
            "message": self.message,
            "success": self.status_code < 400,
        }


class ApiError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "data": None,
            "message": self.message,
            "success": False,
        }


class BadRequest(ApiError):
    status_code = 400
    default_message = "Provide required data"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Already exists"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal Server Error"


def respond(status_code: int, data: Any = None, message: str = "Success"):
    return jsonify(ApiResponse(status_code, data, message).to_dict()), status_code


def error_response(error: ApiError):
    return jsonify(error.to_dict()), error.status_code

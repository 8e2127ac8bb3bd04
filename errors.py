# errors.py
from fastapi import HTTPException


class ChatServiceError(HTTPException):
    """
    Базовая ошибка сервиса. FastAPI сам превращает её в ответ {"detail": ...}.
    """
    status = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status, detail=detail)


class InvalidArgument(ChatServiceError):
    status = 400


class Unauthorized(ChatServiceError):
    status = 401


class Forbidden(ChatServiceError):
    status = 403


class NotFound(ChatServiceError):
    status = 404


class Internal(ChatServiceError):
    status = 500

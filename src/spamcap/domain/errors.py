from typing import Dict, Optional


class SpamCapError(Exception):
    """Базова помилка застосунку."""


class CaptureError(SpamCapError):
    """
    Непередбачена помилка під час запуску захоплення.
    Вже закомічені оновлення статусів не відкочуються.
    """

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, object]:
        return {"success": False, "error": self.message, "details": self.details}

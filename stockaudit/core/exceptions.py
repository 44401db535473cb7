from typing import Iterable, List
from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    """Business-rule violation. Endpoints re-raise it as a 400."""
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class DuplicateCodeError(ValidationError):
    def __init__(self, codes: Iterable[str], shown: int = 10):
        self.codes: List[str] = sorted(set(codes))
        listed = ", ".join(self.codes[:shown])
        more = f" (+{len(self.codes) - shown} more)" if len(self.codes) > shown else ""
        super().__init__(f"Duplicate product codes in plan: {listed}{more}")

class ScheduleTransitionError(ValidationError):
    def __init__(self, current_status: str, detail: str):
        self.current_status = current_status
        super().__init__(detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class InvalidIdentifierError(BaseAppException):
    def __init__(self, detail: str = "Malformed identifier"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

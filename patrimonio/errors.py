"""Error taxonomy.

Services raise these directly (they are HTTPExceptions, so FastAPI renders
them without extra handlers). A rejected commit is always published on the
error channel (see patrimonio.events). The asset mutation layer then returns
its optimistic result; category and location writes also raise
PermissionDenied.
"""
from fastapi import HTTPException


class NotFound(HTTPException):
    def __init__(self, detail: str = "Registro não encontrado"):
        super().__init__(status_code=404, detail=detail)


class ValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)


class InvalidState(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)


class PermissionDenied(HTTPException):
    def __init__(self, detail: str = "Permissão negada"):
        super().__init__(status_code=403, detail=detail)


class ExternalServiceError(HTTPException):
    def __init__(self, detail: str = "Falha na análise"):
        super().__init__(status_code=502, detail=detail)


class ImportRowError(Exception):
    """A single import row failed validation. Collected, never propagated."""

    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f"Linha {line}: {message}")

from pydantic import BaseModel


class ImportResult(BaseModel):
    success: int
    failed: int
    errors: list[str]

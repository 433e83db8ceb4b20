"""
Import service: bulk creation of assets from a CSV or Excel file.

Accepts the canonical header (name, codeId, categoryId, city, value,
observation) as well as the Portuguese headers written by the asset export,
so an exported file can be re-imported as is. Rows are validated first and
the valid ones are created in a single transaction through the mutation
layer, each with its own "Criado" history entry.
"""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation

import pydantic
from openpyxl import load_workbook
from sqlalchemy.orm import Session
from sqlalchemy import select

from patrimonio.config import settings
from patrimonio.errors import ImportRowError
from patrimonio.models.category import Category
from patrimonio.models.location import Location
from patrimonio.models.user import User
from patrimonio.schemas.asset import AssetCreate
from patrimonio.services import asset_service

logger = logging.getLogger(__name__)

IMPORT_DETAILS = "Item importado via CSV."

# Header (lowercase, stripped) -> internal field name
_COL_MAP = {
    # ID column of the export is ignored
    "id": "id",
    "name": "name", "nome": "name",
    "codeid": "code_id", "code_id": "code_id", "código id": "code_id", "codigo id": "code_id",
    "categoryid": "category", "category_id": "category", "category": "category", "categoria": "category",
    "city": "city", "cidade/local": "city", "cidade": "city", "local": "city",
    "value": "value", "valor": "value",
    "observation": "observation", "observação": "observation", "observacao": "observation",
}


def _normalize(s) -> str:
    """Lowercase/strip a header cell; a trailing '*' marks a required column and is ignored."""
    return str(s).replace("\ufeff", "").lower().strip().rstrip("*").strip()


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_value(value) -> Decimal | None:
    """Parse a monetary cell: "4500", "4500.00", "4.500,00", "R$ 1.234,56"."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    s = str(value).replace("\xa0", "").replace(" ", "").replace("R$", "").strip()
    if not s:
        return None
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    try:
        parsed = Decimal(s)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def _read_csv(file_data: bytes) -> list[tuple[int, list]]:
    try:
        text = file_data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = file_data.decode("latin-1")

    # delimiter taken from the header line; ties resolve to ","
    first_line = text.split("\n", 1)[0]
    delimiter = max(",;\t", key=first_line.count)

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = []
    for row in reader:
        rows.append((reader.line_num, row))
    return rows


def _read_excel(file_data: bytes) -> list[tuple[int, list]]:
    wb = load_workbook(filename=io.BytesIO(file_data), data_only=True, read_only=True)
    ws = wb.active
    rows = [(i, list(values)) for i, values in enumerate(ws.iter_rows(values_only=True), 1)]
    wb.close()
    return rows


def _is_blank(values: list) -> bool:
    return all(_cell(v) == "" for v in values)


def _header_map(header: list) -> dict[str, int]:
    col_map: dict[str, int] = {}
    for idx, value in enumerate(header):
        key = _normalize(value)
        if key in _COL_MAP and _COL_MAP[key] not in col_map:
            col_map[_COL_MAP[key]] = idx
    return col_map


class _Resolver:
    """Category/location lookups for one import, loaded once."""

    def __init__(self, db: Session, user_id: str):
        categories = db.scalars(select(Category).where(Category.user_id == user_id)).all()
        locations = db.scalars(select(Location).where(Location.user_id == user_id)).all()
        self.category_ids = {c.id for c in categories}
        self.category_by_name = {c.name.lower(): c.id for c in categories}
        self.location_by_name = {loc.name.lower(): loc.name for loc in locations}

    def category(self, raw: str) -> str:
        if raw in self.category_ids:
            return raw
        category_id = self.category_by_name.get(raw.lower())
        if category_id is None:
            raise ValueError(f"Categoria '{raw}' não encontrada")
        return category_id

    def city(self, raw: str) -> str:
        name = self.location_by_name.get(raw.lower())
        if name is None:
            raise ValueError(f"Local '{raw}' não encontrado")
        return name


def parse_row(line: int, values: list, col_map: dict[str, int], resolver: _Resolver) -> AssetCreate:
    """Validate one data row. Raises ImportRowError listing every problem found."""

    def get(field: str):
        idx = col_map.get(field)
        if idx is None or idx >= len(values):
            return None
        return values[idx]

    problems = []
    name = _cell(get("name"))
    code_id = _cell(get("code_id"))
    category_raw = _cell(get("category"))
    city_raw = _cell(get("city"))
    observation = _cell(get("observation")) or None

    if not name:
        problems.append("Nome é obrigatório")
    if not code_id:
        problems.append("Código ID é obrigatório")

    category_id = None
    if not category_raw:
        problems.append("Categoria é obrigatória")
    else:
        try:
            category_id = resolver.category(category_raw)
        except ValueError as e:
            problems.append(str(e))

    city = None
    if not city_raw:
        problems.append("Cidade/Local é obrigatório")
    else:
        try:
            city = resolver.city(city_raw)
        except ValueError as e:
            problems.append(str(e))

    value = _parse_value(get("value"))
    if value is None:
        problems.append("Valor deve ser um número")
    elif value <= 0:
        problems.append("Valor deve ser um número positivo")

    if problems:
        raise ImportRowError(line, "; ".join(problems))

    try:
        return AssetCreate(
            name=name,
            code_id=code_id,
            category_id=category_id,
            city=city,
            value=value,
            observation=observation,
        )
    except pydantic.ValidationError as e:
        messages = [err["msg"] for err in e.errors()]
        raise ImportRowError(line, "; ".join(messages)) from e


def _file_error(message: str) -> dict:
    return {"success": 0, "failed": 0, "errors": [message]}


def import_assets(db: Session, actor: User, file_data: bytes, filename: str = "") -> dict:
    """
    Import assets from an uploaded file.

    Returns {"success": int, "failed": int, "errors": list[str]}; errors read
    "Linha N: ..." and are capped at IMPORT_MAX_ERRORS. Blank lines are not
    counted. A file-level problem (unreadable, no header, too many rows)
    imports nothing and reports a single error.
    """
    is_excel = filename.lower().endswith((".xlsx", ".xlsm"))
    try:
        rows = _read_excel(file_data) if is_excel else _read_csv(file_data)
    except Exception as e:
        logger.warning("Arquivo de importação ilegível (%s): %s", filename, e)
        return _file_error(f"Não foi possível ler o arquivo: {e}")

    rows = [(line, values) for line, values in rows if not _is_blank(values)]
    if not rows:
        return _file_error("O arquivo está vazio")

    _, header = rows[0]
    col_map = _header_map(header)
    if "name" not in col_map:
        return _file_error(
            "Cabeçalho inválido: esperado name,codeId,categoryId,city,value,observation"
        )

    data_rows = rows[1:]
    if len(data_rows) > settings.IMPORT_MAX_ROWS:
        return _file_error(
            f"O arquivo contém linhas demais ({len(data_rows)}). O máximo é {settings.IMPORT_MAX_ROWS}."
        )

    # Phase 1: validation, nothing written
    resolver = _Resolver(db, actor.id)
    valid: list[AssetCreate] = []
    errors: list[str] = []
    for line, values in data_rows:
        try:
            valid.append(parse_row(line, values, col_map, resolver))
        except ImportRowError as e:
            errors.append(str(e))

    # Phase 2: one transaction for every valid row
    created = asset_service.add_assets(db, actor, valid, IMPORT_DETAILS)

    failed = len(data_rows) - len(created)
    logger.info("Importação de %s: %d criados, %d com erro", filename or "arquivo", len(created), failed)
    return {
        "success": len(created),
        "failed": failed,
        "errors": errors[: settings.IMPORT_MAX_ERRORS],
    }

import csv
import io
import os
from datetime import datetime, timezone
from decimal import Decimal
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from patrimonio.models.history import HistoryLog, HistoryAction
from patrimonio.services.history_service import as_instant, sort_desc
from patrimonio.services.query_service import AssetRow

ASSET_HEADERS = ["ID", "Nome", "Código ID", "Categoria", "Cidade/Local", "Valor", "Observação"]
HISTORY_HEADERS = ["ID", "Item", "Código ID", "Ação", "Usuário", "Data e Hora", "Detalhes"]

_BOM = "\ufeff"
_TIMESTAMP_FMT = "%d/%m/%Y %H:%M:%S"


# ── Font registration (acentuação do português) ──────────────────────────────
_FONT_REGULAR = "Helvetica"
_FONT_BOLD = "Helvetica-Bold"
_UNICODE_CAPABLE = False

_FONT_PAIRS = [
    (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "PTDejaVu", "PTDejaVuBold",
    ),
    (
        "/usr/share/fonts/ttf-dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/ttf-dejavu/DejaVuSans-Bold.ttf",
        "PTDejaVu", "PTDejaVuBold",
    ),
    (
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "PTDejaVu", "PTDejaVuBold",
    ),
]


def _init_export_fonts() -> None:
    global _FONT_REGULAR, _FONT_BOLD, _UNICODE_CAPABLE
    if _UNICODE_CAPABLE:
        return
    for reg_path, bold_path, reg_name, bold_name in _FONT_PAIRS:
        if not os.path.exists(reg_path):
            continue
        try:
            pdfmetrics.registerFont(TTFont(reg_name, reg_path))
            _FONT_REGULAR = reg_name
            if os.path.exists(bold_path):
                pdfmetrics.registerFont(TTFont(bold_name, bold_path))
                _FONT_BOLD = bold_name
            else:
                _FONT_BOLD = reg_name
            _UNICODE_CAPABLE = True
            break
        except Exception:
            continue


_init_export_fonts()


def format_money(value) -> str:
    return f"{Decimal(value):.2f}"


def format_brl(value) -> str:
    """R$ 1.234,56"""
    s = f"{Decimal(value):,.2f}"
    return "R$ " + s.replace(",", "_").replace(".", ",").replace("_", ".")


def format_timestamp(value) -> str:
    return as_instant(value).strftime(_TIMESTAMP_FMT)


def _csv_bytes(rows: list[list]) -> bytes:
    buf = io.StringIO()
    buf.write(_BOM)
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue().encode("utf-8")


def _asset_cells(row: AssetRow) -> list:
    return [
        row.id,
        row.name,
        row.code_id,
        row.category_name,
        row.city,
        format_money(row.value),
        row.observation or "",
    ]


def _history_cells(log: HistoryLog) -> list:
    action = HistoryAction(log.action).value
    return [
        log.id,
        log.asset_name,
        log.code_id,
        action,
        log.user_display_name,
        format_timestamp(log.timestamp),
        log.details,
    ]


# ── CSV ──────────────────────────────────────────────────────────────────────

def export_assets_csv(rows: list[AssetRow]) -> bytes:
    """The current (filtered) inventory view; the output can be re-imported."""
    return _csv_bytes([ASSET_HEADERS] + [_asset_cells(r) for r in rows])


def export_history_csv(logs: list[HistoryLog]) -> bytes:
    return _csv_bytes([HISTORY_HEADERS] + [_history_cells(log) for log in sort_desc(list(logs))])


def export_dashboard_csv(summary: dict) -> bytes:
    rows: list[list] = [["Valor por Cidade"], ["Cidade", "Valor"]]
    rows += [[p["name"], format_money(p["value"])] for p in summary["value_by_city_chart"]]
    rows += [[], ["Distribuição por Categoria"], ["Categoria", "Valor", "Quantidade"]]
    counts = {p["name"]: p["count"] for p in summary["items_by_category_chart"]}
    rows += [
        [p["name"], format_money(p["value"]), counts.get(p["name"], 0)]
        for p in summary["value_by_category_chart"]
    ]
    return _csv_bytes(rows)


# ── Excel ────────────────────────────────────────────────────────────────────

def export_assets_excel(rows: list[AssetRow]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Patrimônio"

    header_fill = PatternFill(start_color="1C2D42", end_color="1C2D42", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)

    for col, h in enumerate(ASSET_HEADERS, 1):
        cell = ws.cell(row=1, column=col, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for row_num, r in enumerate(rows, 2):
        ws.cell(row=row_num, column=1, value=r.id)
        ws.cell(row=row_num, column=2, value=r.name)
        ws.cell(row=row_num, column=3, value=r.code_id)
        ws.cell(row=row_num, column=4, value=r.category_name)
        ws.cell(row=row_num, column=5, value=r.city)
        value_cell = ws.cell(row=row_num, column=6, value=float(r.value))
        value_cell.number_format = "#,##0.00"
        ws.cell(row=row_num, column=7, value=r.observation or "")

    col_widths = [34, 32, 16, 22, 22, 14, 40]
    for i, w in enumerate(col_widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w
    ws.row_dimensions[1].height = 22
    ws.freeze_panes = "A2"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── PDF ──────────────────────────────────────────────────────────────────────

class _Report:
    """Paginated table report on an A4 landscape canvas."""

    def __init__(self, title: str, subtitle: str = ""):
        self.buf = io.BytesIO()
        self.c = canvas.Canvas(self.buf, pagesize=landscape(A4))
        self.c.setTitle(title)
        self.title = title
        self.subtitle = subtitle
        self.pw, self.ph = landscape(A4)
        self.margin = 12 * mm
        self.header_h = 20 * mm
        self.footer_h = 10 * mm
        self.top_y = self.ph - self.header_h - 6 * mm
        self.bottom_y = self.footer_h + 4 * mm
        self.page = 1
        self._draw_header()
        self.y = self.top_y

    def _draw_header(self) -> None:
        c = self.c
        c.setFillColor(colors.HexColor("#1C2D42"))
        c.rect(0, self.ph - self.header_h, self.pw, self.header_h, fill=True, stroke=False)
        c.setFillColor(colors.white)
        c.setFont(_FONT_BOLD, 14)
        c.drawString(self.margin, self.ph - 10 * mm, self.title)
        if self.subtitle:
            c.setFont(_FONT_REGULAR, 8)
            c.drawString(self.margin, self.ph - 16 * mm, self.subtitle[:160])
        c.setFillColor(colors.black)

    def _draw_footer(self) -> None:
        c = self.c
        c.setFillColor(colors.HexColor("#f0f0f0"))
        c.rect(0, 0, self.pw, self.footer_h, fill=True, stroke=False)
        c.setFillColor(colors.HexColor("#888888"))
        c.setFont(_FONT_REGULAR, 7)
        c.drawString(self.margin, 4 * mm, "Patrimônio - Gestão de inventário")
        c.drawRightString(
            self.pw - self.margin, 4 * mm,
            f"Página {self.page}  |  Gerado em: {datetime.now(timezone.utc).strftime('%d/%m/%Y %H:%M')} UTC",
        )

    def new_page(self) -> None:
        self._draw_footer()
        self.c.showPage()
        self.page += 1
        self._draw_header()
        self.y = self.top_y

    def ensure(self, height: float) -> None:
        if self.y - height < self.bottom_y:
            self.new_page()

    def section(self, title: str) -> None:
        self.ensure(14 * mm)
        c = self.c
        c.setFillColor(colors.HexColor("#404040"))
        c.rect(self.margin, self.y - 6 * mm, self.pw - 2 * self.margin, 7 * mm, fill=True, stroke=False)
        c.setFillColor(colors.white)
        c.setFont(_FONT_BOLD, 10)
        c.drawString(self.margin + 3 * mm, self.y - 3.5 * mm, title)
        c.setFillColor(colors.black)
        self.y -= 10 * mm

    def table(self, headers: list[str], widths: list[float], rows: list[list]) -> None:
        """widths are fractions of the content width; cells are clipped to fit."""
        content_w = self.pw - 2 * self.margin
        xs = []
        x = self.margin
        for w in widths:
            xs.append(x)
            x += w * content_w
        limits = [max(int(w * content_w / (1.8 * mm)), 4) for w in widths]

        def draw_headers():
            c = self.c
            c.setFillColor(colors.HexColor("#1C2D42"))
            c.rect(self.margin, self.y - 5.5 * mm, content_w, 6 * mm, fill=True, stroke=False)
            c.setFillColor(colors.white)
            c.setFont(_FONT_BOLD, 8)
            for hx, h in zip(xs, headers):
                c.drawString(hx + 1.5 * mm, self.y - 3.5 * mm, h)
            c.setFillColor(colors.black)
            self.y -= 7 * mm

        self.ensure(14 * mm)
        draw_headers()
        for i, row in enumerate(rows):
            if self.y - 6 * mm < self.bottom_y:
                self.new_page()
                draw_headers()
            c = self.c
            bg = colors.HexColor("#f8f8f8") if i % 2 == 0 else colors.white
            c.setFillColor(bg)
            c.rect(self.margin, self.y - 5 * mm, content_w, 5.5 * mm, fill=True, stroke=False)
            c.setFillColor(colors.black)
            c.setFont(_FONT_REGULAR, 8)
            for cx, limit, value in zip(xs, limits, row):
                c.drawString(cx + 1.5 * mm, self.y - 3 * mm, str(value)[:limit])
            self.y -= 6 * mm
        self.y -= 4 * mm

    def key_values(self, pairs: list[tuple[str, str]]) -> None:
        col1_w = 70 * mm
        for i, (label, value) in enumerate(pairs):
            self.ensure(7 * mm)
            c = self.c
            bg = colors.HexColor("#f8f8f8") if i % 2 == 0 else colors.white
            c.setFillColor(bg)
            c.rect(self.margin, self.y - 6 * mm, self.pw - 2 * self.margin, 7 * mm, fill=True, stroke=False)
            c.setFillColor(colors.black)
            c.setFont(_FONT_BOLD, 9)
            c.drawString(self.margin + 2 * mm, self.y - 3 * mm, label)
            c.setFont(_FONT_REGULAR, 9)
            c.drawString(self.margin + col1_w, self.y - 3 * mm, str(value)[:90])
            self.y -= 7 * mm
        self.y -= 4 * mm

    def finish(self) -> bytes:
        self._draw_footer()
        self.c.save()
        return self.buf.getvalue()


def export_assets_pdf(rows: list[AssetRow]) -> bytes:
    total = sum((Decimal(r.value) for r in rows), Decimal("0"))
    report = _Report(
        "Relatório de Patrimônio",
        f"{len(rows)} itens  |  Valor total: {format_brl(total)}",
    )
    report.table(
        ASSET_HEADERS[1:],
        [0.24, 0.12, 0.14, 0.14, 0.12, 0.24],
        [
            [r.name, r.code_id, r.category_name, r.city_label, format_brl(r.value), r.observation or ""]
            for r in rows
        ],
    )
    return report.finish()


def export_history_pdf(logs: list[HistoryLog]) -> bytes:
    logs = sort_desc(list(logs))
    report = _Report("Histórico de Alterações", f"{len(logs)} registros")
    report.table(
        HISTORY_HEADERS[1:],
        [0.17, 0.10, 0.09, 0.13, 0.14, 0.37],
        [_history_cells(log)[1:] for log in logs],
    )
    return report.finish()


def export_dashboard_pdf(summary: dict) -> bytes:
    report = _Report("Painel de Patrimônio", "Resumo dos últimos 30 dias")
    report.section("Indicadores")
    report.key_values([
        ("Total de ativos:", str(summary["total_assets"])),
        ("Valor total:", format_brl(summary["total_value"])),
        ("Cidades:", str(summary["total_cities"])),
        ("Criados (último mês):", str(summary["created_last_month"])),
        ("Atualizados (último mês):", str(summary["updated_last_month"])),
        ("Excluídos (último mês):", str(summary["deleted_last_month"])),
    ])
    report.section("Valor por Cidade")
    report.table(
        ["Cidade", "Valor"], [0.6, 0.4],
        [[p["name"], format_brl(p["value"])] for p in summary["value_by_city_chart"]],
    )
    counts = {p["name"]: p["count"] for p in summary["items_by_category_chart"]}
    report.section("Distribuição por Categoria")
    report.table(
        ["Categoria", "Valor", "Quantidade"], [0.5, 0.3, 0.2],
        [
            [p["name"], format_brl(p["value"]), counts.get(p["name"], 0)]
            for p in summary["value_by_category_chart"]
        ],
    )
    return report.finish()

"""Downloadable import template workbook."""

import io
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

TEMPLATE_FILENAME = "CommuniTrack_Import_Vorlage.xlsx"

GERMAN_SHEET = "Vorlage Deutsch"
ENGLISH_SHEET = "Template English"

GERMAN_TEMPLATE: list[list[Any]] = [
    ["Datum", "Titel", "Beschreibung", "Initiator", "Schlichtungsversuch",
     "Chat-Auszug", "Kategorie", "Schlagworte", "Wichtig"],
    ["01.12.2024", "Konflikt um Telefonat mit Philipp",
     "Uneinigkeit, ob Philipp zum Theaterbesuch oder zum Vater soll...", "Milla",
     "Vorschlag, das Telefonat auf den Nachmittag zu verlegen",
     "Milla: ... er hat festgestellt, dass du nicht kommen kannst...",
     "konflikt", "telefon, streit", "ja"],
    ["02.12.2024", "Gespräch mit Anwalt über Unterhaltszahlungen",
     "Beratung über rechtliche Schritte...", "Sergej",
     "Vorschlag einer außergerichtlichen Einigung",
     "Anwalt: Die rechtlichen Möglichkeiten sind...",
     "gespraech", "anwalt, unterhalt", "ja"],
    ["03.12.2024", "Verhalten der Kinder beim Abholen",
     "Auffälliges Verhalten beim Wechsel...", "Milla",
     "Ruhiges Gespräch über die Situation", "Kind: Ich möchte nicht...",
     "verhalten", "kinder, abholen", "nein"],
]

ENGLISH_TEMPLATE: list[list[Any]] = [
    ["Date", "Title", "Description", "Initiator", "Mediation_Attempt",
     "Chat_Extract", "Category", "Tags", "Important"],
    ["01.12.2024", "Conflict about phone call with Philipp",
     "Disagreement whether Philipp should go to the theater or to his father...", "Milla",
     "Suggestion to move the phone call to the afternoon",
     "Milla: ... he found out that you couldn't come...",
     "conflict", "phone, dispute", "yes"],
    ["02.12.2024", "Meeting with lawyer about maintenance payments",
     "Legal consultation about next steps...", "Sergej",
     "Suggestion for out-of-court settlement", "Lawyer: The legal options are...",
     "conversation", "lawyer, maintenance", "yes"],
    ["03.12.2024", "Children's behavior during pickup",
     "Noticeable behavior during transition...", "Milla",
     "Calm conversation about the situation", "Child: I don't want to...",
     "behavior", "children, pickup", "no"],
]


def _write_sheet(ws, rows: list[list[Any]]) -> None:
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
    header_alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(rows, 1):
        for col_idx, value in enumerate(row, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if row_idx == 1:
                cell.font = header_font
                cell.fill = header_fill
                cell.alignment = header_alignment

    # Auto-adjust column widths
    for col_idx in range(1, len(rows[0]) + 1):
        max_length = max(len(str(row[col_idx - 1])) for row in rows)
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 50)

    ws.freeze_panes = "A2"


def build_import_template(language: str = "de") -> bytes:
    """Build the import template workbook.

    The workbook always holds a German and an English sheet, each with a
    header row and three example rows. ``language`` selects which sheet is
    active when the file is opened.

    Returns:
        XLSX content as bytes.
    """
    wb = Workbook()
    ws_de = wb.active
    ws_de.title = GERMAN_SHEET
    _write_sheet(ws_de, GERMAN_TEMPLATE)

    ws_en = wb.create_sheet(ENGLISH_SHEET)
    _write_sheet(ws_en, ENGLISH_TEMPLATE)

    if language == "en":
        wb.active = 1

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()

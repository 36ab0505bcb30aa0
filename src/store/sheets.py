"""Google Sheets implementation of StoreTransport."""

import logging
from typing import Any

from src.core.google_auth import build_service
from src.store import schema
from src.store.base import Row

logger = logging.getLogger(__name__)


def _rgb(hex_color: str) -> dict[str, float]:
    value = hex_color.lstrip("#")
    red, green, blue = (int(value[i:i + 2], 16) / 255 for i in (0, 2, 4))
    return {"red": red, "green": green, "blue": blue}


def build_formatting_requests(
    sheet_id: int,
    existing_rule_count: int,
    config_sheet: str,
) -> list[dict[str, Any]]:
    """batchUpdate requests for the status column and header row.

    Existing conditional-format rules are deleted (last first) and recreated,
    so repeated calls leave the sheet in the same state.
    """
    status_range = {
        "sheetId": sheet_id,
        "startRowIndex": 1,
        "startColumnIndex": schema.STATUS,
        "endColumnIndex": schema.STATUS + 1,
    }
    requests: list[dict[str, Any]] = [
        {"deleteConditionalFormatRule": {"sheetId": sheet_id, "index": i}}
        for i in reversed(range(existing_rule_count))
    ]

    last_status_row = len(schema.JOB_STATUS_VALUES)
    requests.append(
        {
            "setDataValidation": {
                "range": status_range,
                "rule": {
                    "condition": {
                        "type": "ONE_OF_RANGE",
                        "values": [
                            {"userEnteredValue": f"='{config_sheet}'!$A$1:$A${last_status_row}"}
                        ],
                    },
                    "strict": False,
                    "showCustomUi": True,
                },
            }
        }
    )

    for position, (status, (background, text)) in enumerate(schema.STATUS_COLORS.items()):
        requests.append(
            {
                "addConditionalFormatRule": {
                    "index": position,
                    "rule": {
                        "ranges": [status_range],
                        "booleanRule": {
                            "condition": {
                                "type": "TEXT_EQ",
                                "values": [{"userEnteredValue": status.value}],
                            },
                            "format": {
                                "backgroundColor": _rgb(background),
                                "textFormat": {"foregroundColor": _rgb(text)},
                            },
                        },
                    },
                }
            }
        )

    requests.append(
        {
            "updateSheetProperties": {
                "properties": {"sheetId": sheet_id, "gridProperties": {"frozenRowCount": 1}},
                "fields": "gridProperties.frozenRowCount",
            }
        }
    )
    return requests


class GoogleSheetsStore:
    """Range-based access to the job tracking spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        credentials: Any = None,
        *,
        service: Any = None,
        jobs_sheet: str = "Jobs",
        config_sheet: str = "_Config",
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._credentials = credentials
        self._service = service
        self.jobs_sheet = jobs_sheet
        self.config_sheet = config_sheet

    def _api(self) -> Any:
        if self._service is None:
            self._service = build_service("sheets", "v4", self._credentials)
        return self._service.spreadsheets()

    def read_range(self, range_spec: str) -> list[Row]:
        response = (
            self._api()
            .values()
            .get(spreadsheetId=self._spreadsheet_id, range=range_spec)
            .execute()
        )
        return [[str(v) for v in row] for row in response.get("values", [])]

    def write_range(self, range_spec: str, rows: list[Row]) -> None:
        self._api().values().update(
            spreadsheetId=self._spreadsheet_id,
            range=range_spec,
            valueInputOption="USER_ENTERED",
            body={"values": rows},
        ).execute()
        logger.debug("Wrote %d rows to %s", len(rows), range_spec)

    def batch_write(self, updates: list[tuple[str, list[Row]]]) -> None:
        if not updates:
            return
        self._api().values().batchUpdate(
            spreadsheetId=self._spreadsheet_id,
            body={
                "valueInputOption": "USER_ENTERED",
                "data": [{"range": r, "values": rows} for r, rows in updates],
            },
        ).execute()
        logger.debug("Batch wrote %d ranges", len(updates))

    def ensure_schema(self) -> None:
        """Create or repair sheets, headers, dropdown values and formatting."""
        sheets = self._get_sheets()
        titles = {s["properties"]["title"] for s in sheets}

        missing = [t for t in (self.jobs_sheet, self.config_sheet) if t not in titles]
        if missing:
            self._batch_update([{"addSheet": {"properties": {"title": t}}} for t in missing])
            logger.info("Created sheets: %s", ", ".join(missing))
            sheets = self._get_sheets()

        self._write_raw(
            f"{self.jobs_sheet}!A1:{schema.LAST_COLUMN}1", [list(schema.COLUMN_HEADERS)]
        )
        self._write_raw(
            f"{self.config_sheet}!A1:A{len(schema.JOB_STATUS_VALUES)}",
            [[status] for status in schema.JOB_STATUS_VALUES],
        )
        self._write_raw(f"{self.config_sheet}!B1", [[schema.IGNORED_COMPANIES_HEADER]])

        jobs = next((s for s in sheets if s["properties"]["title"] == self.jobs_sheet), None)
        if jobs is None:
            logger.warning("Could not find %s sheet for formatting", self.jobs_sheet)
            return
        self._batch_update(
            build_formatting_requests(
                jobs["properties"]["sheetId"],
                len(jobs.get("conditionalFormats", [])),
                self.config_sheet,
            )
        )
        logger.info("Sheet setup complete")

    def _get_sheets(self) -> list[dict[str, Any]]:
        response = (
            self._api()
            .get(
                spreadsheetId=self._spreadsheet_id,
                fields="sheets(properties(sheetId,title),conditionalFormats)",
            )
            .execute()
        )
        return list(response.get("sheets", []))

    def _batch_update(self, requests: list[dict[str, Any]]) -> None:
        self._api().batchUpdate(
            spreadsheetId=self._spreadsheet_id, body={"requests": requests}
        ).execute()

    def _write_raw(self, range_spec: str, rows: list[Row]) -> None:
        self._api().values().update(
            spreadsheetId=self._spreadsheet_id,
            range=range_spec,
            valueInputOption="RAW",
            body={"values": rows},
        ).execute()

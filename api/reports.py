import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from api.deps import get_entry_repository, require_session
from repositories.entries import EntryRepository
from schemas.report import ReportMode, ReportResponse
from schemas.transfer import ImportResult
from services import transfer
from services.reporting import build_report

router = APIRouter(prefix="/api/reports", tags=["reports"], dependencies=[Depends(require_session)])


class ReportQuery:
    """Shared range parameters for the report and its exports."""

    def __init__(
        self,
        mode: ReportMode = Query(ReportMode.monthly),
        start: Optional[dt.date] = Query(None, description="Custom range start (inclusive)"),
        end: Optional[dt.date] = Query(None, description="Custom range end (inclusive)"),
    ):
        self.mode = mode
        self.start = start
        self.end = end

    async def run(self, repository: EntryRepository) -> ReportResponse:
        return await build_report(repository, self.mode, dt.date.today(), self.start, self.end)


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=ReportResponse)
async def get_report(
    query: ReportQuery = Depends(),
    repository: EntryRepository = Depends(get_entry_repository),
):
    return await query.run(repository)


@router.get("/export.xlsx")
async def export_spreadsheet(
    query: ReportQuery = Depends(),
    repository: EntryRepository = Depends(get_entry_repository),
):
    report = await query.run(repository)
    return _attachment(
        transfer.export_xlsx(report.entries),
        transfer.XLSX_MEDIA_TYPE,
        transfer.export_filename("xlsx", dt.date.today()),
    )


@router.get("/export.json")
async def export_json(
    query: ReportQuery = Depends(),
    repository: EntryRepository = Depends(get_entry_repository),
):
    report = await query.run(repository)
    return _attachment(
        transfer.export_json(report.entries),
        "application/json",
        transfer.export_filename("json", dt.date.today()),
    )


@router.post("/import", response_model=ImportResult, status_code=201)
async def import_json(
    file: UploadFile = File(..., description="JSON array of entries"),
    repository: EntryRepository = Depends(get_entry_repository),
):
    data = transfer.parse_import_document(await file.read())
    created = await transfer.import_entries(repository, data)
    return ImportResult(imported=len(created))

"""
Stock check API routes.

One session per application: load a stock list, scan, review, sign off
and download reports.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response

from exceptions import AppError
from models.reconciliation import (
    DiscrepancyReport,
    HeaderDetectRequest,
    HeaderDetectResponse,
    ItemListResponse,
    LoadRequest,
    LoadResponse,
    RowIssueResponse,
    ScanRequest,
    ScanResponse,
    SessionStateResponse,
    SignOffRequest,
    StockItemView,
)
from services.export_service import export_filename, get_export_service
from services.session_service import get_session

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/stock-check", tags=["Stock Check"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def _attachment(content, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ===================
# LOADING
# ===================

@router.post("/headers", response_model=HeaderDetectResponse)
async def detect_headers(data: HeaderDetectRequest):
    """
    Detect headers in pasted data and suggest column roles.

    Roles already filled in the request mapping are kept.
    """
    try:
        session = get_session()
        return session.suggest_mapping(data.raw_text, data.mapping)

    except Exception as e:
        return handle_error(e)


@router.post("/load", response_model=LoadResponse)
async def load_stock_list(data: LoadRequest):
    """
    Replace the stock list with pasted data.

    Raises:
        422: No unique id header, no data, or the header is not in the data
    """
    try:
        session = get_session()
        result = session.load_stock_list(data.raw_text, data.mapping)

        return LoadResponse(
            item_count=len(result.items),
            total_expected_quantity=result.total_expected_quantity,
            column_count=len(result.headers),
            headers=result.headers,
            currency_symbol=result.currency.symbol,
            issues=[RowIssueResponse.model_validate(issue) for issue in result.issues],
            message=session.load_message(result),
        )

    except Exception as e:
        return handle_error(e)


# ===================
# SCANNING
# ===================

@router.post("/scan", response_model=ScanResponse)
async def scan_item(data: ScanRequest):
    """
    Record one scan.

    Raises:
        409: No stock list loaded
        422: Empty scan
    """
    try:
        session = get_session()
        return session.scan(data.raw_id)

    except Exception as e:
        return handle_error(e)


@router.post("/scans/reset", response_model=SessionStateResponse)
async def reset_scans():
    """Clear all scans; the stock list is kept."""
    try:
        session = get_session()
        session.reset_scans()
        logger.info("scans_reset")
        return session.state()

    except Exception as e:
        return handle_error(e)


# ===================
# VIEWS
# ===================

@router.get("/items", response_model=ItemListResponse)
async def list_items(
    filter: Optional[str] = Query(None, max_length=200, description="Case-insensitive text filter"),
):
    """Live item table in list order."""
    try:
        session = get_session()
        views = session.item_views(filter)

        return ItemListResponse(
            data=views,
            total=len(views),
            headers=session.headers,
            unique_id_header=session.mapping.unique_id_header,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/items/{item_id}", response_model=StockItemView)
async def get_item(item_id: str):
    """
    Get one expected item by id (any case).

    Raises:
        404: Item not on the list
    """
    try:
        session = get_session()
        return session.get_item_view(item_id)

    except Exception as e:
        return handle_error(e)


@router.get("/report", response_model=DiscrepancyReport)
async def get_report():
    """Discrepancy report for the current scans."""
    try:
        session = get_session()
        return session.report()

    except Exception as e:
        return handle_error(e)


@router.put("/sign-off", response_model=SessionStateResponse)
async def sign_off(data: SignOffRequest):
    """Set the name shown on reports."""
    try:
        session = get_session()
        session.sign_off(data.colleague_name)
        return session.state()

    except Exception as e:
        return handle_error(e)


@router.get("/state", response_model=SessionStateResponse)
async def get_state():
    try:
        return get_session().state()

    except Exception as e:
        return handle_error(e)


@router.post("/state/reset", response_model=SessionStateResponse)
async def reset_state():
    """Forget saved state and start over with the demo list."""
    try:
        session = get_session()
        session.reset_app()
        return session.state()

    except Exception as e:
        return handle_error(e)


# ===================
# EXPORTS
# ===================

@router.get("/export/full.csv")
async def export_full_csv():
    try:
        content = get_export_service().full_list_csv(get_session())
        return _attachment(content, export_filename("full", "csv"), "text/csv; charset=utf-8")

    except Exception as e:
        return handle_error(e)


@router.get("/export/unexpected.csv")
async def export_unexpected_csv():
    try:
        content = get_export_service().unexpected_csv(get_session())
        return _attachment(content, export_filename("unexpected", "csv"), "text/csv; charset=utf-8")

    except Exception as e:
        return handle_error(e)


@router.get("/export/full.json")
async def export_full_json():
    try:
        content = get_export_service().full_json(get_session())
        return _attachment(content, export_filename("full", "json"), "application/json")

    except Exception as e:
        return handle_error(e)


@router.get("/export/report.xlsx")
async def export_report_excel():
    """
    Download the discrepancy workbook.

    Raises:
        409: No stock list loaded
    """
    try:
        report = get_session().report()
        output = get_export_service().generate_report_excel(report)
        return _attachment(output.getvalue(), f"{report.report_id}.xlsx", XLSX_MEDIA_TYPE)

    except Exception as e:
        return handle_error(e)

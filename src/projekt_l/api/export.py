"""Data export endpoint."""

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import ExportFormat
from ..db.database import get_db
from ..db.models import User
from ..export.data import collect_user_data, export_filename, to_csv
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .schemas import ProblemDetails

router = APIRouter(prefix="/v1/export", tags=["export"])
logger = get_logger("api")


@router.get(
    "",
    response_class=Response,
    responses={
        200: {
            "content": {"application/json": {}, "text/csv": {}},
            "description": "All of the user's records",
        },
        400: {"model": ProblemDetails, "description": "Unknown export format"},
    },
)
def export_data(
    export_format: str = Query(ExportFormat.JSON.value, alias="format"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Download every record the user owns as JSON or sectioned CSV."""
    try:
        fmt = ExportFormat(export_format)
    except ValueError:
        raise bad_request("Invalid format. Use json or csv")

    export = collect_user_data(db, current_user)
    headers = {"Content-Disposition": f'attachment; filename="{export_filename(fmt)}"'}
    counts = {name: len(rows) for name, rows in export["data"].items()}
    logger.info(f"Exported {fmt.value} data for user {current_user.id}: {counts}")

    if fmt == ExportFormat.JSON:
        return JSONResponse(content=export, headers=headers)
    return Response(content=to_csv(export), media_type="text/csv; charset=utf-8", headers=headers)

"""Report generation, history and export endpoints."""

from fastapi import APIRouter, Depends, Response

from app.routes.deps import get_report_service, http_error
from app.schemas.report import CrossReportRequest, ExportFormat, ReportRead, VariableReportRequest
from app.services.answer_store import PersistenceError
from app.services.report_service import ReportNotFoundError, ReportService
from app.services.reports import ReportValidationError
from app.services.survey_service import SurveyNotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def _generate(generate, *args):
    """Run a generator method and translate its errors to HTTP errors."""
    try:
        return generate(*args)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)
    except ReportValidationError as e:
        raise http_error(422, "validation_failure", e)
    except PersistenceError as e:
        raise http_error(502, "persistence_failure", e)


@router.post("/surveys/{survey_id}/reports/variable", response_model=ReportRead, status_code=201)
def generate_variable_report(
    survey_id: str,
    data: VariableReportRequest,
    service: ReportService = Depends(get_report_service),
):
    """Frequency table for one question."""
    return _generate(service.generate_variable_report, survey_id, data.question_id)


@router.post("/surveys/{survey_id}/reports/cross", response_model=ReportRead, status_code=201)
def generate_cross_report(
    survey_id: str,
    data: CrossReportRequest,
    service: ReportService = Depends(get_report_service),
):
    """Cross-tabulation of exactly two questions."""
    return _generate(service.generate_cross_report, survey_id, data.variables)


@router.post("/surveys/{survey_id}/reports/sample", response_model=ReportRead, status_code=201)
def generate_sample_report(survey_id: str, service: ReportService = Depends(get_report_service)):
    """Frequency tables for every answered question."""
    return _generate(service.generate_sample_report, survey_id)


@router.post("/surveys/{survey_id}/reports/item", response_model=ReportRead, status_code=201)
def generate_item_report(survey_id: str, service: ReportService = Depends(get_report_service)):
    """Raw answers listed per question."""
    return _generate(service.generate_item_report, survey_id)


@router.get("/surveys/{survey_id}/reports", response_model=list[ReportRead])
def list_reports(survey_id: str, service: ReportService = Depends(get_report_service)):
    """Report history for a survey, newest first."""
    try:
        return service.list_reports(survey_id)
    except SurveyNotFoundError as e:
        raise http_error(404, "not_found", e)


@router.get("/reports/{report_id}", response_model=ReportRead)
def get_report(report_id: str, service: ReportService = Depends(get_report_service)):
    try:
        return service.get_report(report_id)
    except ReportNotFoundError as e:
        raise http_error(404, "not_found", e)


@router.get("/reports/{report_id}/export")
def export_report(
    report_id: str,
    format: str = ExportFormat.CSV.value,
    service: ReportService = Depends(get_report_service),
) -> Response:
    """Download a stored report as CSV."""
    try:
        content = service.export_report(report_id, format)
    except ReportNotFoundError as e:
        raise http_error(404, "not_found", e)
    except ReportValidationError as e:
        raise http_error(422, "validation_failure", e)

    logger.debug(f"Exported report {report_id} ({len(content)} bytes)")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="report-{report_id}.csv"'},
    )

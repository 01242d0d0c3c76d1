import io
from flask import Blueprint, request, jsonify, current_app, send_file
from src.domain.exceptions import NoReportAvailableError, GenerationFailedError
from src.application.services.analytics import AnalyticsService
from src.application.services.culture_score import CultureScoreService
from src.application.services.employee_summary import EmployeeSummaryService
from src.application.services.report_renderer import render_culture_score_report, report_filename
from src.application.services.settings_service import SettingsService

api_bp = Blueprint('api', __name__, url_prefix='/api/v1')


@api_bp.route('/admin/culture-score/generate', methods=['POST'])
def generate_culture_score():
    """
    Runs the culture score pipeline.
    Serves the cached report when it is fresh unless forceRefresh is set.
    """
    payload = request.get_json(silent=True) or {}
    force_refresh = bool(payload.get('forceRefresh', False))

    try:
        report = CultureScoreService.generate_culture_score(force_refresh=force_refresh)
        return jsonify(report.model_dump(mode='json'))

    except GenerationFailedError as e:
        current_app.logger.error(f"Error generating culture score: {e}")
        return jsonify({"error": "Failed to generate culture score"}), 500


@api_bp.route('/admin/culture-score', methods=['GET'])
def get_culture_score():
    """Latest report, without triggering generation."""
    try:
        report = CultureScoreService.get_latest_culture_score()
        return jsonify(report.model_dump(mode='json'))

    except NoReportAvailableError:
        return jsonify({"error": "No culture score available"}), 404


@api_bp.route('/admin/culture-score/pdf', methods=['GET'])
def download_culture_score_pdf():
    """Streams the latest report as a PDF attachment."""
    try:
        report = CultureScoreService.get_latest_culture_score()
    except NoReportAvailableError:
        return jsonify({"error": "No culture score available"}), 404

    pdf_bytes = render_culture_score_report(report, SettingsService.get_branding())

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=report_filename()
    )


@api_bp.route('/survey-stats', methods=['GET'])
def get_survey_stats():
    """Survey completion counts for the current quarter."""
    stats = AnalyticsService.get_survey_stats()
    return jsonify(stats.model_dump())


@api_bp.route('/admin/employees/<int:employee_id>/summary', methods=['POST'])
def generate_employee_summary(employee_id):
    payload = request.get_json(silent=True) or {}

    try:
        result = EmployeeSummaryService.generate_summary(
            employee_id, force_refresh=bool(payload.get('forceRefresh', False))
        )
    except GenerationFailedError as e:
        current_app.logger.error(f"Error generating summary: {e}")
        return jsonify({"error": "Failed to generate summary"}), 500

    if result is None:
        return jsonify({"error": "Employee not found"}), 404
    return jsonify(result.model_dump(mode='json'))


@api_bp.route('/employees/<string:email>/summary', methods=['GET'])
def get_employee_summary(email):
    result = EmployeeSummaryService.get_summary(email)
    if result is None:
        return jsonify({"error": "Employee not found"}), 404
    return jsonify(result.model_dump(mode='json'))

# Overview: Flask API routes for financial reports and spreadsheet export.

# backend/toko/routes/reports.py
"""Financial report API routes (owner only)"""

from io import BytesIO

from flask import Blueprint, current_app, g, jsonify, request, send_file

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..services import export_service, reporting_service
from ..time_utils import utcnow

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reports_bp.get("/financial")
@require_auth
@require_roles("owner")
def financial_report_route():
    """?period=today|week|month|year (default today)"""
    try:
        period = request.args.get("period", "today")
        report = reporting_service.financial_report(g.principal.tenant_id, period)
        return jsonify(report), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build financial report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/financial/export")
@require_auth
@require_roles("owner")
def export_financial_report_route():
    """Download the financial report as an .xlsx workbook."""
    try:
        period = request.args.get("period", "today")
        now = utcnow()
        report = reporting_service.financial_report(g.principal.tenant_id, period, now=now)
        content = export_service.build_financial_workbook(report, period, now=now)

        return send_file(
            BytesIO(content),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=export_service.export_filename(period, now),
        )
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to export financial report")
        return jsonify({"error": "Internal server error"}), 500

"""Printable HTML page for a budget request."""
import html
from datetime import datetime, timezone
from typing import Optional

from stockroom.schemas import Approval, BudgetRequest, BudgetStatus

STATUS_LABELS = {
    BudgetStatus.PENDING: "Pending approval",
    BudgetStatus.APPROVED: "Approved",
    BudgetStatus.REJECTED: "Rejected",
}


def _e(value) -> str:
    return html.escape(str(value)) if value is not None else ""


def _materials(request: BudgetRequest) -> str:
    if not request.material_list:
        return '<p style="text-align:center;color:#666;">No materials listed</p>'
    rows = "".join(
        f"<tr><td>{i}</td><td>{_e(m.item)}</td><td>{_e(m.quantity)}</td></tr>"
        for i, m in enumerate(request.material_list, start=1)
    )
    return f"<table><thead><tr><th>#</th><th>Item</th><th>Quantity</th></tr></thead><tbody>{rows}</tbody></table>"


def _approval(approval: Optional[Approval]) -> str:
    if approval is None:
        return ""
    remark = f"<p><strong>Remark:</strong> {_e(approval.remark)}</p>" if approval.remark else ""
    return (
        '<div class="approval">'
        "<h2>Approval</h2>"
        f"<p><strong>Approver:</strong> {_e(approval.approver_name)}</p>"
        f"<p><strong>Decision:</strong> {_e(STATUS_LABELS[approval.decision])}</p>"
        f"<p><strong>Decided at:</strong> {approval.created_at:%Y-%m-%d %H:%M} UTC</p>"
        f"{remark}"
        "</div>"
    )


def render_request_html(
    request: BudgetRequest,
    approval: Optional[Approval] = None,
    printed_at: Optional[datetime] = None,
) -> str:
    """Standalone page for the browser's print dialog; nothing is stored."""
    printed_at = printed_at or datetime.now(timezone.utc)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Budget request {_e(request.request_no)}</title>
  <style>
    body {{ font-family: sans-serif; margin: 20px; }}
    .header {{ text-align: center; margin-bottom: 30px; }}
    .info-grid {{ display: grid; grid-template-columns: 1fr 1fr; gap: 10px; margin: 20px 0; }}
    table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
    th, td {{ border: 1px solid #ccc; padding: 8px; }}
    .approval {{ margin: 20px 0; padding: 10px; border: 1px solid #007bff; }}
  </style>
</head>
<body>
  <div class="header">
    <h1>Budget Request</h1>
    <p>Request no: {_e(request.request_no)}</p>
  </div>
  <div class="info-grid">
    <div><strong>Requester:</strong> {_e(request.requester)}</div>
    <div><strong>Request date:</strong> {request.request_date:%Y-%m-%d}</div>
    <div><strong>Account:</strong> {_e(request.account_code)} {_e(request.account_name)}</div>
    <div><strong>Amount:</strong> {request.amount:,.2f}</div>
    <div><strong>Status:</strong> {STATUS_LABELS[request.status]}</div>
    <div><strong>Note:</strong> {_e(request.note) or "-"}</div>
  </div>
  {_approval(approval)}
  <h3>Materials</h3>
  {_materials(request)}
  <div style="margin-top:30px;text-align:center;color:#666;">
    <p>Printed at: {printed_at:%Y-%m-%d %H:%M} UTC</p>
  </div>
</body>
</html>"""

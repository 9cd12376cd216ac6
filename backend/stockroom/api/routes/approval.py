"""
Decision endpoint behind the approve/reject links in the approval email.

Answers with a small HTML page since the approver lands here from a mail
client. Deciding an already decided request shows a 409 page and changes
nothing.
"""
import html
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from stockroom.api.deps import get_budget_service
from stockroom.core.exceptions import StockroomError
from stockroom.schemas import BudgetStatus
from stockroom.services.budget_service import BudgetService, format_amount, parse_decision_query

logger = logging.getLogger(__name__)

router = APIRouter()


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    content = f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{html.escape(title)}</title>
<style>body {{ font-family: sans-serif; max-width: 560px; margin: 60px auto; text-align: center; }}</style>
</head>
<body><h1>{html.escape(title)}</h1>{body}</body>
</html>"""
    return HTMLResponse(content, status_code=status_code)


@router.get("", response_class=HTMLResponse)
def decide(
    request_id: Optional[str] = Query(None),
    decision: Optional[str] = Query(None),
    approver: Optional[str] = Query(None),
    remark: Optional[str] = Query(None),
    service: BudgetService = Depends(get_budget_service),
):
    try:
        request_id, parsed = parse_decision_query(request_id, decision)
        request, approval = service.record_decision(request_id, parsed, approver_name=approver, remark=remark)
    except StockroomError as e:
        logger.info(f"Decision link refused: {e.detail}")
        return _page("Request not updated", f"<p>{html.escape(e.detail)}</p>", status_code=e.status_code)

    title = "Request approved" if request.status == BudgetStatus.APPROVED else "Request rejected"
    return _page(
        title,
        f"<p>Request <strong>{html.escape(request.request_no)}</strong> from "
        f"{html.escape(request.requester)} for {format_amount(request.amount)} "
        f"was marked {request.status.value} by {html.escape(approval.approver_name)}.</p>",
    )

"""Budget requests: CRUD (PENDING only for edits), print page, PDF and account codes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, StreamingResponse

from stockroom.api.deps import get_budget_service
from stockroom.schemas import AccountCode, BudgetRequest, BudgetRequestCreate, BudgetRequestUpdate, BudgetStatus
from stockroom.services.budget_service import BudgetService
from stockroom.services.pdf_service import generate_request_pdf
from stockroom.services.print_service import render_request_html

router = APIRouter()


@router.get("/budget-requests", response_model=List[BudgetRequest])
def list_requests(
    status: Optional[BudgetStatus] = Query(None),
    service: BudgetService = Depends(get_budget_service),
):
    return service.list_requests(status)


@router.post("/budget-requests", response_model=BudgetRequest, status_code=201)
def create_request(data: BudgetRequestCreate, service: BudgetService = Depends(get_budget_service)):
    """Create a PENDING request and email the approver. Email failure does not fail the request."""
    return service.create_request(data)


@router.get("/budget-requests/{request_id}", response_model=dict)
def get_request(request_id: str, service: BudgetService = Depends(get_budget_service)):
    request = service.get_request(request_id)
    approval = service.get_approval(request_id) if request.status != BudgetStatus.PENDING else None
    return {
        **request.model_dump(mode="json"),
        "approval": approval.model_dump(mode="json") if approval else None,
    }


@router.patch("/budget-requests/{request_id}", response_model=BudgetRequest)
def update_request(
    request_id: str,
    updates: BudgetRequestUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    return service.update_request(request_id, updates)


@router.delete("/budget-requests/{request_id}", response_model=dict)
def delete_request(request_id: str, service: BudgetService = Depends(get_budget_service)):
    service.delete_request(request_id)
    return {"message": "Budget request deleted", "id": request_id}


@router.get("/budget-requests/{request_id}/print", response_class=HTMLResponse)
def print_request(request_id: str, service: BudgetService = Depends(get_budget_service)):
    request = service.get_request(request_id)
    approval = service.get_approval(request_id) if request.status != BudgetStatus.PENDING else None
    return HTMLResponse(render_request_html(request, approval))


@router.get("/budget-requests/{request_id}/pdf")
def download_request_pdf(request_id: str, service: BudgetService = Depends(get_budget_service)):
    request = service.get_request(request_id)
    approval = service.get_approval(request_id) if request.status != BudgetStatus.PENDING else None
    pdf = generate_request_pdf(request, approval)
    return StreamingResponse(
        pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=budget_request_{request.request_no}.pdf"},
    )


@router.get("/account-codes", response_model=List[AccountCode])
def list_account_codes(service: BudgetService = Depends(get_budget_service)):
    return service.list_account_codes()

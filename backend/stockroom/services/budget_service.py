"""
Budget request approval workflow.

A request is created PENDING and moves to APPROVED or REJECTED exactly once,
when the approver follows one of the links in the notification email. Only
PENDING requests can be edited or deleted.
"""
import html
import logging
from concurrent.futures import Future
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from stockroom.core.audit import AuditLog
from stockroom.core.exceptions import (
    DataStoreError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailed,
)
from stockroom.datastore.base import DataStore
from stockroom.datastore.repositories import AccountCodeRepository, ApprovalRepository, BudgetRequestRepository
from stockroom.schemas import (
    AccountCode,
    Approval,
    BudgetRequest,
    BudgetRequestCreate,
    BudgetRequestUpdate,
    BudgetStatus,
    Decision,
    MaterialItem,
)
from stockroom.services.email_service import DeliveryResult

logger = logging.getLogger(__name__)

EMPTY_ITEMS_PLACEHOLDER = "<p>(No materials listed)</p>"


def build_decision_url(base_url: str, request_id: str, decision: Decision) -> str:
    query = urlencode({"request_id": request_id, "decision": decision.value})
    return f"{base_url.rstrip('/')}/approval?{query}"


def parse_decision_query(request_id: Optional[str], decision: Optional[str]) -> Tuple[str, Decision]:
    """Validate the two query parameters of a decision link."""
    if not request_id or not request_id.strip():
        raise ValidationFailed("Missing request_id", fields=["request_id"])
    try:
        parsed = Decision((decision or "").strip().upper())
    except ValueError:
        raise ValidationFailed("decision must be APPROVE or REJECT", fields=["decision"])
    return request_id.strip(), parsed


def format_amount(amount: float) -> str:
    return f"{amount:,.2f}"


def render_items_table(materials: Sequence[MaterialItem]) -> str:
    """Materials as an HTML table for the email body. Cell text is escaped."""
    if not materials:
        return EMPTY_ITEMS_PLACEHOLDER
    rows = "".join(
        f"<tr><td style=\"border:1px solid #ccc;padding:6px;\">{i}</td>"
        f"<td style=\"border:1px solid #ccc;padding:6px;\">{html.escape(m.item)}</td>"
        f"<td style=\"border:1px solid #ccc;padding:6px;\">{html.escape(m.quantity)}</td></tr>"
        for i, m in enumerate(materials, start=1)
    )
    return (
        "<table style=\"width:100%;border-collapse:collapse;\">"
        "<thead><tr><th>#</th><th>Item</th><th>Quantity</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def build_template_params(
    request: BudgetRequest,
    approver_name: str,
    approver_email: str,
    cc_emails: str,
    base_url: str,
) -> Dict[str, str]:
    """Flat string mapping expected by the approval email template."""
    return {
        "requester": request.requester,
        "approver_name": approver_name,
        "approver_email": approver_email,
        "cc_emails": cc_emails,
        "account_name": request.account_name or request.account_code,
        "amount": format_amount(request.amount),
        "items_table": render_items_table(request.material_list),
        "note": request.note or "-",
        "approve_url": build_decision_url(base_url, request.id, Decision.APPROVE),
        "reject_url": build_decision_url(base_url, request.id, Decision.REJECT),
    }


def _keep_filled(materials: Sequence[MaterialItem]) -> List[MaterialItem]:
    return [m for m in materials if m.item.strip()]


class BudgetService:
    def __init__(self, datastore: DataStore, notifier, settings):
        self.requests = BudgetRequestRepository(datastore)
        self.approvals = ApprovalRepository(datastore)
        self.account_codes = AccountCodeRepository(datastore)
        self._notifier = notifier
        self._settings = settings

    # -- reads ----------------------------------------------------------

    def list_requests(self, status: Optional[BudgetStatus] = None) -> List[BudgetRequest]:
        filters = {"status": status.value} if status else None
        return self.requests.list(filters, order_by="created_at", descending=True)

    def get_request(self, request_id: str) -> BudgetRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError("Budget request not found")
        return request

    def get_approval(self, request_id: str) -> Optional[Approval]:
        approvals = self.approvals.list({"request_id": request_id}, limit=1)
        return approvals[0] if approvals else None

    def list_account_codes(self) -> List[AccountCode]:
        return self.account_codes.list(order_by="code")

    def _account_name(self, code: str) -> str:
        account = self.account_codes.get(code)
        if account is None:
            raise ValidationFailed(f"Unknown account code {code}", fields=["account_code"])
        return account.name

    # -- writes ---------------------------------------------------------

    def create_request(self, data: BudgetRequestCreate) -> BudgetRequest:
        missing = [
            name for name, value in (
                ("requester", data.requester.strip()),
                ("account_code", data.account_code.strip()),
                ("amount", data.amount),
            )
            if value in ("", None)
        ]
        if missing:
            raise ValidationFailed("Please fill in all required fields", fields=missing)
        if data.amount < 0:
            raise ValidationFailed("Amount cannot be negative", fields=["amount"])

        payload = {
            "requester": data.requester.strip(),
            "request_date": (data.request_date or date.today()).isoformat(),
            "account_code": data.account_code.strip(),
            "account_name": self._account_name(data.account_code.strip()),
            "amount": data.amount,
            "note": data.note or "",
            "material_list": [m.model_dump() for m in _keep_filled(data.material_list)],
            "status": BudgetStatus.PENDING.value,
        }
        request = self.requests.create(payload)
        AuditLog.log_action(
            "create", "budget_request", request.id, actor=request.requester,
            changes={"request_no": request.request_no, "amount": request.amount},
        )
        self.notify_approver(request)
        return request

    def notify_approver(self, request: BudgetRequest) -> "Future[DeliveryResult]":
        params = build_template_params(
            request,
            approver_name=self._settings.APPROVER_NAME,
            approver_email=self._settings.APPROVER_EMAIL,
            cc_emails=self._settings.APPROVAL_CC_EMAILS,
            base_url=self._settings.APPROVAL_BASE_URL,
        )
        try:
            return self._notifier.dispatch(request.id, params)
        except RuntimeError as e:
            # Executor already shut down; the request itself is saved
            logger.error(f"Could not queue approval email for request {request.id}: {e}")
            AuditLog.log_notification(request.id, delivered=False, detail=str(e))
            failed: "Future[DeliveryResult]" = Future()
            failed.set_result(DeliveryResult(ok=False, detail=str(e)))
            return failed

    def _require_pending(self, request: BudgetRequest, action: str) -> None:
        if request.status != BudgetStatus.PENDING:
            AuditLog.log_refused(action, "budget_request", request.id, f"status is {request.status.value}")
            raise InvalidTransitionError(
                f"Request {request.request_no} is already {request.status.value}",
                current_status=request.status.value,
            )

    def update_request(self, request_id: str, changes: BudgetRequestUpdate) -> BudgetRequest:
        request = self.get_request(request_id)
        self._require_pending(request, "update")

        partial = changes.model_dump(mode="json", exclude_unset=True)
        blanked = [k for k in ("requester", "account_code", "amount") if k in partial and partial[k] in ("", None)]
        if blanked:
            raise ValidationFailed("Please fill in all required fields", fields=blanked)
        if partial.get("amount") is not None and partial["amount"] < 0:
            raise ValidationFailed("Amount cannot be negative", fields=["amount"])
        if "account_code" in partial:
            partial["account_name"] = self._account_name(partial["account_code"])
        if changes.material_list is not None:
            partial["material_list"] = [m.model_dump() for m in _keep_filled(changes.material_list)]

        updated = self.requests.update(request_id, partial, match={"status": BudgetStatus.PENDING.value})
        if updated is None:
            # decided between our read and our write
            current = self.get_request(request_id)
            self._require_pending(current, "update")
            raise NotFoundError("Budget request not found")
        AuditLog.log_action("update", "budget_request", request_id, changes=partial)
        return updated

    def delete_request(self, request_id: str) -> None:
        request = self.get_request(request_id)
        self._require_pending(request, "delete")
        self.requests.delete(request_id)
        AuditLog.log_action("delete", "budget_request", request_id, changes={"request_no": request.request_no})

    def record_decision(
        self,
        request_id: str,
        decision: Decision,
        approver_name: Optional[str] = None,
        remark: Optional[str] = None,
    ) -> Tuple[BudgetRequest, Approval]:
        """
        Apply PENDING -> APPROVED/REJECTED and write the Approval row.

        The status flip is conditional on the row still being PENDING, so two
        clicks on the emailed links can never both succeed.
        """
        request = self.get_request(request_id)
        self._require_pending(request, "decide")
        approver = approver_name or self._settings.APPROVER_NAME
        new_status = decision.resulting_status

        updated = self.requests.update(
            request_id, {"status": new_status.value}, match={"status": BudgetStatus.PENDING.value}
        )
        if updated is None:
            current = self.get_request(request_id)
            self._require_pending(current, "decide")
            raise NotFoundError("Budget request not found")

        try:
            approval = self.approvals.create({
                "request_id": request_id,
                "approver_name": approver,
                "decision": new_status.value,
                "remark": remark,
            })
        except DataStoreError:
            logger.error(f"Approval row for {updated.request_no} failed; reverting status to PENDING")
            reverted = self.requests.update(
                request_id, {"status": BudgetStatus.PENDING.value}, match={"status": new_status.value}
            )
            if reverted is None:
                logger.critical(f"Request {updated.request_no} is {new_status.value} without an approval row")
            raise

        AuditLog.log_decision(request_id, updated.request_no, new_status.value, approver)
        logger.info(f"Budget request {updated.request_no} {new_status.value.lower()} by {approver}")
        return updated, approval

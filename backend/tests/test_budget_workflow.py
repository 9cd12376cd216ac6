import re
from datetime import date, datetime, timezone
from unittest import mock

import pytest

from stockroom.core.exceptions import InvalidTransitionError, NotFoundError, ValidationFailed
from stockroom.schemas import (
    Approval,
    BudgetRequest,
    BudgetRequestCreate,
    BudgetRequestUpdate,
    BudgetStatus,
    Decision,
    MaterialItem,
)
from stockroom.services.budget_service import (
    EMPTY_ITEMS_PLACEHOLDER,
    build_decision_url,
    build_template_params,
    parse_decision_query,
    render_items_table,
)
from stockroom.services.email_service import DeliveryResult
from stockroom.services.pdf_service import generate_request_pdf
from stockroom.services.print_service import render_request_html

from conftest import StubNotifier


def _form(**overrides) -> BudgetRequestCreate:
    fields = {
        "requester": "Nok",
        "request_date": date(2025, 8, 8),
        "account_code": "5101",
        "amount": 1234.5,
        "note": "",
        "material_list": [
            MaterialItem(item="Gauze rolls", quantity="20"),
            MaterialItem(item="   ", quantity="1"),
        ],
    }
    fields.update(overrides)
    return BudgetRequestCreate(**fields)


def _request(**overrides) -> BudgetRequest:
    fields = {
        "id": "req-1",
        "request_no": "BR-202508-0001",
        "requester": "Nok",
        "request_date": date(2025, 8, 8),
        "account_code": "5101",
        "account_name": "Medical supplies",
        "amount": 1234.5,
        "material_list": [MaterialItem(item="Gauze <large>", quantity="20")],
    }
    fields.update(overrides)
    return BudgetRequest(**fields)


# -- creation -----------------------------------------------------------

def test_create_request_is_pending_and_notifies(budget_service, notifier):
    request = budget_service.create_request(_form())

    assert request.status == BudgetStatus.PENDING
    assert re.fullmatch(r"BR-\d{6}-0001", request.request_no)
    assert request.account_name == "Medical supplies"
    assert [m.item for m in request.material_list] == ["Gauze rolls"]

    assert len(notifier.calls) == 1
    request_id, params = notifier.calls[0]
    assert request_id == request.id
    assert params["amount"] == "1,234.50"
    assert params["note"] == "-"
    assert params["approver_name"] == "Somchai"
    assert params["approve_url"] == f"https://stock.example.com/approval?request_id={request.id}&decision=APPROVE"
    assert params["reject_url"].endswith("decision=REJECT")


def test_request_numbers_are_sequential(budget_service):
    first = budget_service.create_request(_form())
    second = budget_service.create_request(_form(requester="Pim"))
    assert first.request_no.endswith("-0001")
    assert second.request_no.endswith("-0002")


def test_request_number_after_delete_continues_from_highest(budget_service):
    first = budget_service.create_request(_form())
    second = budget_service.create_request(_form(requester="Pim"))
    budget_service.delete_request(first.id)

    third = budget_service.create_request(_form(requester="Nok"))

    assert second.request_no.endswith("-0002")
    assert third.request_no.endswith("-0003")
    assert sorted(r.request_no for r in budget_service.list_requests()) == [second.request_no, third.request_no]


@pytest.mark.parametrize(
    "overrides, missing",
    [
        ({"requester": "  "}, ["requester"]),
        ({"account_code": ""}, ["account_code"]),
        ({"amount": None}, ["amount"]),
        ({"requester": "", "amount": None}, ["requester", "amount"]),
    ],
)
def test_missing_required_fields_rejected_before_any_write(budget_service, notifier, overrides, missing):
    with pytest.raises(ValidationFailed) as exc:
        budget_service.create_request(_form(**overrides))

    assert exc.value.fields == missing
    assert budget_service.list_requests() == []
    assert notifier.calls == []


def test_unknown_account_code(budget_service):
    with pytest.raises(ValidationFailed) as exc:
        budget_service.create_request(_form(account_code="9999"))
    assert exc.value.fields == ["account_code"]


def test_failed_notification_does_not_undo_creation(store, budget_service):
    failing = StubNotifier(DeliveryResult(ok=False, status_code=400, detail="The public key is invalid"))
    budget_service._notifier = failing

    request = budget_service.create_request(_form())

    assert budget_service.get_request(request.id).status == BudgetStatus.PENDING
    assert len(failing.calls) == 1


def test_unqueueable_notification_still_returns_request(budget_service):
    budget_service._notifier = mock.Mock()
    budget_service._notifier.dispatch.side_effect = RuntimeError("cannot schedule new futures after shutdown")

    request = budget_service.create_request(_form())

    assert budget_service.get_request(request.id).status == BudgetStatus.PENDING
    result = budget_service.notify_approver(request).result()
    assert result.ok is False
    assert "shutdown" in result.detail


# -- decisions ------------------------------------------------------------

def test_approve_records_one_approval(budget_service):
    request = budget_service.create_request(_form())

    decided, approval = budget_service.record_decision(request.id, Decision.APPROVE, remark="OK for Q3")

    assert decided.status == BudgetStatus.APPROVED
    assert approval.request_id == request.id
    assert approval.approver_name == "Somchai"
    assert approval.decision == BudgetStatus.APPROVED
    assert approval.remark == "OK for Q3"
    assert budget_service.get_approval(request.id) == approval


def test_reject(budget_service):
    request = budget_service.create_request(_form())
    decided, approval = budget_service.record_decision(request.id, Decision.REJECT, approver_name="Manager")
    assert decided.status == BudgetStatus.REJECTED
    assert approval.approver_name == "Manager"


def test_second_decision_is_refused(budget_service):
    request = budget_service.create_request(_form())
    budget_service.record_decision(request.id, Decision.APPROVE)

    with pytest.raises(InvalidTransitionError) as exc:
        budget_service.record_decision(request.id, Decision.REJECT)

    assert exc.value.current_status == "APPROVED"
    assert budget_service.get_request(request.id).status == BudgetStatus.APPROVED
    assert budget_service.approvals.count({"request_id": request.id}) == 1


def test_decision_on_missing_request(budget_service):
    with pytest.raises(NotFoundError):
        budget_service.record_decision("nope", Decision.APPROVE)


def test_pending_request_has_no_approval(budget_service):
    request = budget_service.create_request(_form())
    assert budget_service.get_approval(request.id) is None


# -- edit / delete ----------------------------------------------------------

def test_update_pending_request(budget_service):
    request = budget_service.create_request(_form())

    updated = budget_service.update_request(request.id, BudgetRequestUpdate(
        account_code="5102", amount=99, material_list=[MaterialItem(item="Toner", quantity="2"), MaterialItem(item="")],
    ))

    assert updated.account_name == "Office supplies"
    assert updated.amount == 99
    assert [m.item for m in updated.material_list] == ["Toner"]
    assert updated.status == BudgetStatus.PENDING


def test_update_cannot_blank_required_fields(budget_service):
    request = budget_service.create_request(_form())
    with pytest.raises(ValidationFailed):
        budget_service.update_request(request.id, BudgetRequestUpdate(requester=""))


def test_decided_request_cannot_be_edited_or_deleted(budget_service):
    request = budget_service.create_request(_form())
    budget_service.record_decision(request.id, Decision.REJECT)

    with pytest.raises(InvalidTransitionError):
        budget_service.update_request(request.id, BudgetRequestUpdate(note="late change"))
    with pytest.raises(InvalidTransitionError):
        budget_service.delete_request(request.id)

    assert budget_service.get_request(request.id).status == BudgetStatus.REJECTED


def test_delete_pending_request(budget_service):
    request = budget_service.create_request(_form())
    budget_service.delete_request(request.id)
    with pytest.raises(NotFoundError):
        budget_service.get_request(request.id)


def test_list_requests_by_status(budget_service):
    approved = budget_service.create_request(_form())
    budget_service.create_request(_form(requester="Pim"))
    budget_service.record_decision(approved.id, Decision.APPROVE)

    assert [r.id for r in budget_service.list_requests(BudgetStatus.APPROVED)] == [approved.id]
    assert len(budget_service.list_requests()) == 2
    assert [a.code for a in budget_service.list_account_codes()] == ["5101", "5102"]


# -- decision links and email params ---------------------------------------------

def test_decision_url_round_trip():
    url = build_decision_url("https://stock.example.com/", "req 1", Decision.REJECT)
    assert url == "https://stock.example.com/approval?request_id=req+1&decision=REJECT"


def test_parse_decision_query():
    assert parse_decision_query(" req-1 ", "approve") == ("req-1", Decision.APPROVE)
    with pytest.raises(ValidationFailed):
        parse_decision_query("req-1", "MAYBE")
    with pytest.raises(ValidationFailed):
        parse_decision_query(None, "APPROVE")


def test_items_table_escapes_markup():
    table = render_items_table([MaterialItem(item="<script>x</script>", quantity="2 & more")])
    assert "<script>" not in table
    assert "&lt;script&gt;" in table
    assert "2 &amp; more" in table


def test_empty_items_table_placeholder():
    assert render_items_table([]) == EMPTY_ITEMS_PLACEHOLDER


def test_template_params_are_flat_strings():
    params = build_template_params(
        _request(note="Urgent"), "Somchai", "approver@example.com", "a@example.com,b@example.com",
        "https://stock.example.com",
    )
    assert set(params) == {
        "requester", "approver_name", "approver_email", "cc_emails", "account_name",
        "amount", "items_table", "note", "approve_url", "reject_url",
    }
    assert all(isinstance(v, str) for v in params.values())
    assert params["note"] == "Urgent"
    assert params["account_name"] == "Medical supplies"


# -- print / pdf -------------------------------------------------------------

def test_print_page_includes_approval():
    request = _request(status=BudgetStatus.APPROVED)
    approval = Approval(
        id="a1", request_id="req-1", approver_name="Somchai", decision=BudgetStatus.APPROVED,
        remark="Fine", created_at=datetime(2025, 8, 9, 9, 30, tzinfo=timezone.utc),
    )

    page = render_request_html(request, approval, printed_at=datetime(2025, 8, 10, tzinfo=timezone.utc))

    assert page.startswith("<!DOCTYPE html>")
    assert "BR-202508-0001" in page
    assert "Gauze &lt;large&gt;" in page
    assert "1,234.50" in page
    assert "Somchai" in page
    assert "2025-08-09 09:30" in page


def test_print_page_without_materials():
    page = render_request_html(_request(material_list=[]))
    assert "No materials listed" in page
    assert "Approver" not in page


def test_pdf_is_generated():
    pdf = generate_request_pdf(_request())
    assert pdf.read(4) == b"%PDF"

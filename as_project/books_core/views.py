import json
from functools import wraps

import structlog
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .exceptions import (AssistantNotConfigured, BusinessScopeError,
                         ChatCompletionError, ConcurrentUpdateError,
                         RateLimitExceeded)
from .forms import (AssistantSettingsForm, BankAccountForm, BillForm,
                    ChatMessageForm, InvoiceForm, PaymentForm, PurchaseForm,
                    ReceiptForm, ReconciliationForm, TransactionForm,
                    clean_items)
from .middleware import select_business
from .models import Bill, Business, Chat, Invoice
from .services import assistant, banking, documents, payments, reconciliation

logger = structlog.get_logger(__name__)


def _error(message, status):
    return JsonResponse({"ok": False, "error": message}, status=status)


def _payload(request):
    """JSON body if that is what was sent, form data otherwise."""
    if request.content_type == "application/json":
        try:
            body = json.loads(request.body or b"{}")
        except json.JSONDecodeError:
            raise ValidationError("Malformed JSON body")
        if not isinstance(body, dict):
            raise ValidationError("Expected a JSON object")
        return body
    return request.POST.dict()


def _validated(form):
    if not form.is_valid():
        raise ValidationError(form.errors.as_text())
    return form


def _expected_version(data):
    version = data.get("version")
    if version in (None, ""):
        return None
    try:
        return int(version)
    except (TypeError, ValueError):
        raise ValidationError("version must be an integer")


def _ok(**payload):
    return JsonResponse({"ok": True, **payload})


def business_endpoint(view):
    """
    Resolve request.business (set by CurrentBusinessMiddleware) and
    translate domain errors into JSON responses.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        business = getattr(request, "business", None)
        if not request.user.is_authenticated or business is None:
            return _error("Select a business first", 403)
        try:
            return view(request, business, *args, **kwargs)
        except ObjectDoesNotExist:
            return _error("Not found", 404)
        except BusinessScopeError as e:
            return _error(str(e), 404)
        except ValidationError as e:
            return _error(" ".join(e.messages), 400)
        except ConcurrentUpdateError as e:
            return _error(str(e), 409)
        except AssistantNotConfigured as e:
            return _error(str(e), 400)
        except RateLimitExceeded as e:
            return _error(str(e), 429)
        except ChatCompletionError as e:
            logger.error("assistant_unavailable", business_id=business.pk, error=str(e))
            return _error("The assistant is unavailable, try again later", 502)

    return wrapper


# ----------------------------
# Business selection
# ----------------------------
@require_POST
def select_business_view(request, business_id):
    if not request.user.is_authenticated:
        return _error("Login required", 403)
    business = get_object_or_404(Business, pk=business_id, owner=request.user)
    select_business(request, business)
    return _ok(business={"id": business.pk, "name": business.name})


# ----------------------------
# Payments / receipts / purchases
# ----------------------------
def _create(service, form_class):
    @require_POST
    @business_endpoint
    def view(request, business):
        form = _validated(form_class(_payload(request), business=business))
        obj = service(business, user=request.user, **form.values())
        return JsonResponse({"ok": True, "object": model_to_dict(obj)}, status=201)

    return view


def _update(service, form_class):
    @require_POST
    @business_endpoint
    def view(request, business, pk):
        data = _payload(request)
        form = _validated(form_class(data, business=business, partial=True))
        obj = service(business, pk, expected_version=_expected_version(data),
                      user=request.user, **form.values())
        return _ok(object=model_to_dict(obj))

    return view


def _delete(service):
    @require_POST
    @business_endpoint
    def view(request, business, pk):
        data = _payload(request)
        service(business, pk, expected_version=_expected_version(data),
                user=request.user)
        return _ok()

    return view


create_payment_view = _create(payments.create_payment, PaymentForm)
update_payment_view = _update(payments.update_payment, PaymentForm)
delete_payment_view = _delete(payments.delete_payment)

create_receipt_view = _create(payments.create_receipt, ReceiptForm)
update_receipt_view = _update(payments.update_receipt, ReceiptForm)
delete_receipt_view = _delete(payments.delete_receipt)

create_purchase_view = _create(documents.create_purchase, PurchaseForm)
update_purchase_view = _update(documents.update_purchase, PurchaseForm)
delete_purchase_view = _delete(documents.delete_purchase)


# ----------------------------
# Invoices / bills
# ----------------------------
def _document_payload(obj):
    data = model_to_dict(obj)
    data["items"] = [model_to_dict(item) for item in obj.items.all()]
    return data


def _create_document(service, form_class):
    @require_POST
    @business_endpoint
    def view(request, business):
        data = _payload(request)
        form = _validated(form_class(data, business=business))
        obj = service(business, items=clean_items(data.get("items")),
                      user=request.user, **form.values())
        return JsonResponse({"ok": True, "object": _document_payload(obj)}, status=201)

    return view


def _update_document(service, form_class):
    @require_POST
    @business_endpoint
    def view(request, business, pk):
        data = _payload(request)
        form = _validated(form_class(data, business=business, partial=True))
        items = clean_items(data["items"]) if "items" in data else None
        obj = service(business, pk, items=items,
                      expected_version=_expected_version(data),
                      user=request.user, **form.values())
        return _ok(object=_document_payload(obj))

    return view


def _mark_paid(model):
    @require_POST
    @business_endpoint
    def view(request, business, pk):
        doc = documents.mark_paid(business, model, pk, user=request.user)
        return _ok(status=doc.status)

    return view


create_invoice_view = _create_document(documents.create_invoice, InvoiceForm)
update_invoice_view = _update_document(documents.update_invoice, InvoiceForm)
delete_invoice_view = _delete(documents.delete_invoice)
mark_invoice_paid_view = _mark_paid(Invoice)

create_bill_view = _create_document(documents.create_bill, BillForm)
update_bill_view = _update_document(documents.update_bill, BillForm)
delete_bill_view = _delete(documents.delete_bill)
mark_bill_paid_view = _mark_paid(Bill)


# ----------------------------
# Banking
# ----------------------------
@require_POST
@business_endpoint
def create_bank_account_view(request, business):
    form = _validated(BankAccountForm(_payload(request), business=business))
    account = banking.create_bank_account(business, user=request.user, **form.values())
    return JsonResponse({"ok": True, "object": model_to_dict(account)}, status=201)


@require_POST
@business_endpoint
def update_bank_account_view(request, business, pk):
    data = _payload(request)
    form = _validated(BankAccountForm(data, business=business, partial=True))
    account = banking.update_bank_account(
        business, pk, expected_version=_expected_version(data),
        user=request.user, **form.values())
    return _ok(object=model_to_dict(account))


@require_POST
@business_endpoint
def create_transaction_view(request, business):
    form = _validated(TransactionForm(_payload(request), business=business))
    tx = banking.record_transaction(business, user=request.user, **form.values())
    return JsonResponse({"ok": True, "object": model_to_dict(tx)}, status=201)


@require_POST
@business_endpoint
def update_transaction_view(request, business, pk):
    form = _validated(TransactionForm(_payload(request), business=business, partial=True))
    values = form.values()
    values.pop("to_account", None)  # a transfer's destination is fixed at creation
    tx = banking.update_transaction(business, pk, user=request.user, **values)
    return _ok(object=model_to_dict(tx))


@require_POST
@business_endpoint
def delete_transaction_view(request, business, pk):
    deleted = banking.delete_transaction(business, pk, user=request.user)
    return _ok(deleted=deleted)


@require_http_methods(["GET", "POST"])
@business_endpoint
def reconciliation_view(request, business, account_id):
    """GET previews the difference; POST saves the selection."""
    data = request.GET.dict() if request.method == "GET" else _payload(request)
    form = _validated(ReconciliationForm(data))
    selected_ids = form.selected_ids()

    if request.method == "POST":
        if selected_ids is None:
            raise ValidationError("selected is required")
        reconciled, unreconciled = reconciliation.save_reconciliation(
            business, account_id, selected_ids, user=request.user)
        return _ok(reconciled=reconciled, unreconciled=unreconciled)

    account, transactions, result = reconciliation.reconciliation_preview(
        business, account_id,
        statement_balance=form.cleaned_data.get("statement_balance"),
        selected_ids=selected_ids,
    )
    return _ok(
        account=account.pk,
        statement_balance=result.statement_balance,
        selected_total=result.selected_total,
        difference=result.difference,
        is_balanced=result.is_balanced,
        transactions=[model_to_dict(tx) for tx in transactions],
    )


# ----------------------------
# TallyAI
# ----------------------------
@require_http_methods(["GET", "POST"])
@business_endpoint
def assistant_settings_view(request, business):
    if request.method == "POST":
        data = _payload(request)
        form = _validated(AssistantSettingsForm(data))
        values = {k: v for k, v in form.cleaned_data.items() if k in data}
        current = assistant.update_settings(business, **values)
    else:
        current = assistant.get_or_create_settings(business)
    return _ok(settings={
        "model": current.model,
        "temperature": current.temperature,
        "max_tokens": current.max_tokens,
        "is_configured": current.is_configured,
    })


@require_POST
@business_endpoint
def create_chat_view(request, business):
    chat = assistant.create_chat(business, request.user)
    return JsonResponse({"ok": True, "chat": {"id": chat.pk, "title": chat.title}},
                        status=201)


@require_GET
@business_endpoint
def chat_messages_view(request, business, chat_id):
    chat = Chat.objects.for_business(business).get(pk=chat_id, user=request.user)
    return _ok(messages=[
        {"role": m.role, "content": m.content, "created_at": m.created_at}
        for m in chat.messages.all()
    ])


@require_POST
@business_endpoint
def send_message_view(request, business, chat_id):
    chat = Chat.objects.for_business(business).get(pk=chat_id, user=request.user)
    form = _validated(ChatMessageForm(_payload(request)))
    answer = assistant.send_message(
        business, chat, request.user, form.cleaned_data["content"])
    return _ok(message={"role": answer.role, "content": answer.content})

"""
TallyAI: answers questions about one business by sending a snapshot of
its books plus the chat history to a chat-completion API.
"""
import json
import time
from datetime import timedelta
from typing import Any

import openai
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction
from django.utils import timezone

from ..exceptions import (AssistantNotConfigured, ChatCompletionError,
                          RateLimitExceeded)
from ..models import (ApiRequest, AssistantSettings, BankAccount, Bill, Chat,
                      ChatMessage, Creditor, Debtor, Invoice, Payment,
                      PaymentReceipt, Purchase, Transaction)
from ..models.base import ZERO

logger = structlog.get_logger(__name__)

ENDPOINT = "tally-ai-chat"
RECENT_TRANSACTION_LIMIT = 50
RECENT_DAYS = 30

SYSTEM_PROMPT = (
    "You are TallyAI, an AI assistant for the accounting platform ArthoSutra. "
    "You help users analyze their financial data and provide insights.\n\n"
    "Current business context:\n{context}"
)


def get_or_create_settings(business):
    """Settings row for the business, created with defaults on first use."""
    assistant_settings, created = AssistantSettings.objects.get_or_create(
        business=business)
    if created:
        logger.info("assistant_settings_created", business_id=business.pk)
    return assistant_settings


def update_settings(business, **fields):
    assistant_settings = get_or_create_settings(business)
    for name in ("api_key", "model", "temperature", "max_tokens"):
        if name in fields:
            setattr(assistant_settings, name, fields[name])
    assistant_settings.full_clean()
    assistant_settings.save()
    return assistant_settings


# ----------------------------------------
# Business context snapshot
# ----------------------------------------
def _rows(queryset, *fields):
    return list(queryset.values(*fields))


def _total(queryset, field):
    return queryset.aggregate(total=models.Sum(field))["total"] or ZERO


def build_business_context(business, today=None) -> dict[str, Any]:
    """Everything the assistant may talk about, scoped to one business."""
    today = today or timezone.localdate()
    debtors = Debtor.objects.for_business(business)
    creditors = Creditor.objects.for_business(business)
    accounts = BankAccount.objects.for_business(business)

    latest = _rows(
        Transaction.objects.for_business(business)
        .order_by("-date", "-pk")[:RECENT_TRANSACTION_LIMIT],
        "transaction_number", "account__name", "type", "amount", "date",
        "description", "category", "reconciled",
    )
    cutoff = today - timedelta(days=RECENT_DAYS)

    return {
        "business": {
            "name": business.name,
            "address": business.address,
            "email": business.email,
            "tax_id": business.tax_id,
        },
        "debtors": _rows(debtors, "name", "email", "phone", "outstanding_amount"),
        "creditors": _rows(creditors, "name", "email", "phone", "outstanding_amount"),
        "invoices": _rows(
            Invoice.objects.for_business(business),
            "invoice_number", "debtor__name", "issue_date", "due_date",
            "status", "total_amount",
        ),
        "bills": _rows(
            Bill.objects.for_business(business),
            "bill_number", "creditor__name", "issue_date", "due_date",
            "status", "total_amount",
        ),
        "payments": _rows(
            Payment.objects.for_business(business),
            "payment_number", "creditor__name", "bill__bill_number", "amount",
            "payment_date", "payment_method",
        ),
        "receipts": _rows(
            PaymentReceipt.objects.for_business(business),
            "receipt_number", "debtor__name", "invoice__invoice_number", "amount",
            "payment_date", "payment_method",
        ),
        "purchases": _rows(
            Purchase.objects.for_business(business),
            "purchase_number", "creditor__name", "item_name", "quantity",
            "unit_price", "total_price", "purchase_date",
        ),
        "bank_accounts": _rows(
            accounts, "name", "account_type", "opening_balance",
            "current_balance", "last_reconciled_at",
        ),
        "bank_transactions": latest,
        "total_receivable": _total(debtors, "outstanding_amount"),
        "total_payable": _total(creditors, "outstanding_amount"),
        "total_bank_balance": _total(accounts, "current_balance"),
        "recent_transactions": [tx for tx in latest if tx["date"] >= cutoff],
    }


def build_messages(business, chat, context=None) -> list[dict[str, str]]:
    """System prompt with the business snapshot, then the chat so far."""
    if context is None:
        context = build_business_context(business)
    messages = [{
        "role": "system",
        "content": SYSTEM_PROMPT.format(
            context=json.dumps(context, cls=DjangoJSONEncoder, indent=2)),
    }]
    messages.extend(
        {"role": message.role, "content": message.content}
        for message in chat.messages.all()
    )
    return messages


# ----------------------------------------
# Chat-completion client
# ----------------------------------------
class ChatCompletionClient:
    """Thin wrapper over the OpenAI SDK with retry and exponential backoff.

    Works with any OpenAI-compatible endpoint via ASSISTANT_BASE_URL.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_retries = (
            settings.ASSISTANT_MAX_RETRIES if max_retries is None else max_retries)
        self._initial_delay = settings.ASSISTANT_RETRY_INITIAL_DELAY
        self._max_delay = settings.ASSISTANT_RETRY_MAX_DELAY

        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout or settings.ASSISTANT_TIMEOUT_SECONDS,
            # retries are ours, not the SDK's
            "max_retries": 0,
        }
        base_url = base_url or settings.ASSISTANT_BASE_URL
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = openai.OpenAI(**client_kwargs)
        self._logger = logger.bind(model=self._model)

    @classmethod
    def from_settings(cls, assistant_settings):
        return cls(
            api_key=assistant_settings.api_key,
            model=assistant_settings.model,
            temperature=assistant_settings.temperature,
            max_tokens=assistant_settings.max_tokens,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based): 1s, 2s, 4s... capped."""
        return min(self._initial_delay * (2 ** (attempt - 1)), self._max_delay)

    def complete(self, messages: list[dict[str, str]]) -> str:
        attempt = 0
        while True:
            try:
                response = self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                )
                content = response.choices[0].message.content or ""
                self._logger.info(
                    "completion_received",
                    attempts=attempt + 1,
                    input_tokens=response.usage.prompt_tokens if response.usage else 0,
                    output_tokens=response.usage.completion_tokens if response.usage else 0,
                )
                return content
            except openai.APIError as e:
                attempt += 1
                if attempt > self._max_retries:
                    self._logger.error("completion_failed", attempts=attempt, error=str(e))
                    raise ChatCompletionError(str(e)) from e
                delay = self.backoff_delay(attempt)
                self._logger.warning(
                    "completion_retry", attempt=attempt, delay=delay, error=str(e))
                time.sleep(delay)


# ----------------------------------------
# Chats
# ----------------------------------------
def check_rate_limit(user, now=None):
    """Raise RateLimitExceeded when `user` used up the window's allowance."""
    now = now or timezone.now()
    limit = settings.ASSISTANT_RATE_LIMIT
    window = settings.ASSISTANT_RATE_WINDOW
    used = ApiRequest.objects.filter(
        user=user, created_at__gte=now - window).count()
    if used >= limit:
        logger.warning("assistant_rate_limited", user_id=user.pk, used=used, limit=limit)
        raise RateLimitExceeded(limit, window)
    return limit - used


def create_chat(business, user, title="New Chat"):
    return Chat.objects.create(business=business, user=user, title=title)


def send_message(business, chat, user, content, *, client=None):
    """
    Store the user's message, ask the model, store and return its answer.
    The user's message is kept even when the completion fails.
    """
    if chat.business_id != business.pk:
        raise Chat.DoesNotExist("Chat does not belong to this business")
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message is empty")

    assistant_settings = get_or_create_settings(business)
    if not assistant_settings.is_configured:
        raise AssistantNotConfigured(
            f"No API key configured for business {business.pk}")

    with transaction.atomic():
        check_rate_limit(user)
        ApiRequest.objects.create(user=user, endpoint=ENDPOINT)
        ChatMessage.objects.create(chat=chat, role="user", content=content)
        if chat.title == "New Chat":
            chat.title = content[:50]
            chat.save(update_fields=["title"])

    # No open DB transaction while waiting on the network
    client = client or ChatCompletionClient.from_settings(assistant_settings)
    reply = client.complete(build_messages(business, chat))

    answer = ChatMessage.objects.create(chat=chat, role="assistant", content=reply)
    logger.info(
        "assistant_replied",
        business_id=business.pk,
        chat_id=chat.pk,
        user_id=user.pk,
        reply_length=len(reply),
    )
    return answer

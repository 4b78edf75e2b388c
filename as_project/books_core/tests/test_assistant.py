import datetime
from decimal import Decimal
from unittest import mock

import openai
import pytest
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from books_core.exceptions import (AssistantNotConfigured, ChatCompletionError,
                                   RateLimitExceeded)
from books_core.models import ApiRequest, ChatMessage, Transaction
from books_core.services import assistant
from books_core.services.assistant import (ChatCompletionClient,
                                           build_business_context, create_chat,
                                           send_message, update_settings)

from .helpers import make_account, make_creditor, make_debtor, make_owner


class FakeAPIError(openai.APIError):
    def __init__(self):
        Exception.__init__(self, "boom")


def completion(content):
    response = mock.Mock()
    response.choices = [mock.Mock(message=mock.Mock(content=content))]
    response.usage = mock.Mock(prompt_tokens=12, completion_tokens=3)
    return response


@mock.patch("books_core.services.assistant.time.sleep")
@mock.patch("books_core.services.assistant.openai.OpenAI")
class ChatCompletionClientTests(TestCase):
    def make_client(self, **kwargs):
        return ChatCompletionClient("sk-test", "gpt-4o-mini", 0.7, 500, **kwargs)

    def test_returns_first_choice(self, openai_cls, sleep):
        openai_cls.return_value.chat.completions.create.return_value = completion("Hi")

        self.assertEqual(self.make_client().complete([{"role": "user", "content": "x"}]),
                         "Hi")
        sleep.assert_not_called()
        kwargs = openai_cls.return_value.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["max_tokens"], 500)

    def test_sdk_retries_are_disabled(self, openai_cls, sleep):
        self.make_client(base_url="http://llm.local/v1")
        kwargs = openai_cls.call_args.kwargs
        self.assertEqual(kwargs["max_retries"], 0)
        self.assertEqual(kwargs["base_url"], "http://llm.local/v1")
        self.assertEqual(kwargs["timeout"], 30)

    def test_retries_with_exponential_backoff_then_gives_up(self, openai_cls, sleep):
        openai_cls.return_value.chat.completions.create.side_effect = FakeAPIError()

        with self.assertRaises(ChatCompletionError):
            self.make_client().complete([])

        self.assertEqual([c.args[0] for c in sleep.call_args_list], [1, 2, 4])
        self.assertEqual(openai_cls.return_value.chat.completions.create.call_count, 4)

    def test_recovers_after_a_transient_error(self, openai_cls, sleep):
        openai_cls.return_value.chat.completions.create.side_effect = [
            FakeAPIError(), completion("Later")]

        self.assertEqual(self.make_client().complete([]), "Later")
        sleep.assert_called_once_with(1.0)

    def test_backoff_is_capped(self, openai_cls, sleep):
        client = self.make_client()
        self.assertEqual(client.backoff_delay(3), 4.0)
        self.assertEqual(client.backoff_delay(6), 5.0)


class SendMessageTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.chat = create_chat(self.business, self.user)
        self.client_stub = mock.Mock()
        self.client_stub.complete.return_value = "You owe 0.00"

    def configure(self):
        update_settings(self.business, api_key="sk-test", model="gpt-4o-mini")

    def test_unconfigured_business_is_refused(self):
        with self.assertRaises(AssistantNotConfigured):
            send_message(self.business, self.chat, self.user, "Hello",
                         client=self.client_stub)
        self.assertFalse(ChatMessage.objects.exists())
        self.assertFalse(ApiRequest.objects.exists())

    def test_empty_message_is_rejected(self):
        self.configure()
        with self.assertRaises(ValidationError):
            send_message(self.business, self.chat, self.user, "   ",
                         client=self.client_stub)

    def test_conversation_is_stored(self):
        self.configure()

        answer = send_message(self.business, self.chat, self.user,
                              "How much do I owe my suppliers this month?",
                              client=self.client_stub)

        self.assertEqual(answer.content, "You owe 0.00")
        self.assertEqual(
            list(self.chat.messages.values_list("role", flat=True)),
            ["user", "assistant"])
        self.chat.refresh_from_db()
        self.assertEqual(self.chat.title, "How much do I owe my suppliers this month?")
        self.assertEqual(ApiRequest.objects.filter(user=self.user).count(), 1)

        sent = self.client_stub.complete.call_args.args[0]
        self.assertEqual(sent[0]["role"], "system")
        self.assertIn(self.business.name, sent[0]["content"])
        self.assertEqual(sent[-1], {"role": "user",
                                    "content": "How much do I owe my suppliers this month?"})

    def test_title_is_truncated_and_set_once(self):
        self.configure()
        send_message(self.business, self.chat, self.user, "x" * 80,
                     client=self.client_stub)
        send_message(self.business, self.chat, self.user, "second question",
                     client=self.client_stub)
        self.chat.refresh_from_db()
        self.assertEqual(self.chat.title, "x" * 50)

    @override_settings(ASSISTANT_RATE_LIMIT=2)
    def test_rate_limit_blocks_before_storing(self):
        self.configure()
        for _ in range(2):
            ApiRequest.objects.create(user=self.user, endpoint=assistant.ENDPOINT)

        with self.assertRaises(RateLimitExceeded):
            send_message(self.business, self.chat, self.user, "Hello",
                         client=self.client_stub)

        self.assertFalse(ChatMessage.objects.exists())
        self.client_stub.complete.assert_not_called()

    def test_failed_completion_keeps_the_question(self):
        self.configure()
        self.client_stub.complete.side_effect = ChatCompletionError("down")

        with self.assertRaises(ChatCompletionError):
            send_message(self.business, self.chat, self.user, "Hello",
                         client=self.client_stub)

        self.assertEqual(
            list(self.chat.messages.values_list("role", flat=True)), ["user"])

    def test_chat_of_another_business_is_refused(self):
        self.configure()
        _, other = make_owner("other", "Other Co")
        with self.assertRaises(type(self.chat).DoesNotExist):
            send_message(other, self.chat, self.user, "Hello",
                         client=self.client_stub)


class BusinessContextTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        make_debtor(self.business, name="D1", outstanding="100.00")
        make_debtor(self.business, name="D2", outstanding="50.00")
        make_creditor(self.business, name="C1", outstanding="30.00")
        self.account = make_account(self.business, opening="400.00")
        _, other = make_owner("other", "Other Co")
        make_debtor(other, name="Stranger", outstanding="999.00")

    def test_totals_and_scoping(self):
        context = build_business_context(self.business, today=datetime.date(2025, 3, 15))

        self.assertEqual(context["business"]["name"], self.business.name)
        self.assertEqual(context["total_receivable"], Decimal("150.00"))
        self.assertEqual(context["total_payable"], Decimal("30.00"))
        self.assertEqual(context["total_bank_balance"], Decimal("400.00"))
        self.assertEqual(sorted(d["name"] for d in context["debtors"]), ["D1", "D2"])

    def test_recent_transactions_cover_thirty_days(self):
        for number, date in (("DEP-0001", datetime.date(2025, 3, 10)),
                             ("DEP-0002", datetime.date(2025, 1, 2))):
            Transaction.objects.create(
                business=self.business, account=self.account,
                transaction_number=number, type="deposit",
                amount=Decimal("10.00"), date=date)

        context = build_business_context(self.business, today=datetime.date(2025, 3, 15))

        self.assertEqual(len(context["bank_transactions"]), 2)
        self.assertEqual(
            [tx["transaction_number"] for tx in context["recent_transactions"]],
            ["DEP-0001"])


@pytest.mark.django_db
def test_settings_are_created_with_defaults():
    user, business = make_owner()
    current = assistant.get_or_create_settings(business)
    assert current.model == "gpt-4o-mini"
    assert current.max_tokens == 2000
    assert not current.is_configured

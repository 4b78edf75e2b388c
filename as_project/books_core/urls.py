from django.urls import path

from . import views

app_name = "books_core"

urlpatterns = [
    path("businesses/<int:business_id>/select/", views.select_business_view,
         name="select-business"),

    path("payments/", views.create_payment_view, name="payment-create"),
    path("payments/<int:pk>/", views.update_payment_view, name="payment-update"),
    path("payments/<int:pk>/delete/", views.delete_payment_view, name="payment-delete"),

    path("receipts/", views.create_receipt_view, name="receipt-create"),
    path("receipts/<int:pk>/", views.update_receipt_view, name="receipt-update"),
    path("receipts/<int:pk>/delete/", views.delete_receipt_view, name="receipt-delete"),

    path("purchases/", views.create_purchase_view, name="purchase-create"),
    path("purchases/<int:pk>/", views.update_purchase_view, name="purchase-update"),
    path("purchases/<int:pk>/delete/", views.delete_purchase_view,
         name="purchase-delete"),

    path("invoices/", views.create_invoice_view, name="invoice-create"),
    path("invoices/<int:pk>/", views.update_invoice_view, name="invoice-update"),
    path("invoices/<int:pk>/delete/", views.delete_invoice_view, name="invoice-delete"),
    path("invoices/<int:pk>/paid/", views.mark_invoice_paid_view, name="invoice-paid"),

    path("bills/", views.create_bill_view, name="bill-create"),
    path("bills/<int:pk>/", views.update_bill_view, name="bill-update"),
    path("bills/<int:pk>/delete/", views.delete_bill_view, name="bill-delete"),
    path("bills/<int:pk>/paid/", views.mark_bill_paid_view, name="bill-paid"),

    path("bank-accounts/", views.create_bank_account_view, name="bank-account-create"),
    path("bank-accounts/<int:pk>/", views.update_bank_account_view,
         name="bank-account-update"),
    path("bank-accounts/<int:account_id>/reconciliation/", views.reconciliation_view,
         name="reconciliation"),

    path("transactions/", views.create_transaction_view, name="transaction-create"),
    path("transactions/<int:pk>/", views.update_transaction_view,
         name="transaction-update"),
    path("transactions/<int:pk>/delete/", views.delete_transaction_view,
         name="transaction-delete"),

    path("assistant/settings/", views.assistant_settings_view, name="assistant-settings"),
    path("chats/", views.create_chat_view, name="chat-create"),
    path("chats/<int:chat_id>/messages/", views.chat_messages_view, name="chat-messages"),
    path("chats/<int:chat_id>/send/", views.send_message_view, name="chat-send"),
]

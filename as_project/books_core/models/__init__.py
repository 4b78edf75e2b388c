from .assistant import ApiRequest, AssistantSettings, Chat, ChatMessage
from .auditlog import AuditLog
from .banking import BankAccount, Transaction
from .bill import Bill, BillItem
from .business import Business, User
from .invoice import Invoice, InvoiceItem
from .party import Creditor, Debtor
from .payment import Payment, PaymentReceipt
from .purchase import Purchase

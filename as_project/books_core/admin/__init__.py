from .actions import mark_bill_as_paid, mark_inv_as_paid
from .assistant import ApiRequestAdmin, AssistantSettingsAdmin, ChatAdmin
from .auditlog import AuditLogAdmin
from .banking import BankAccountAdmin, TransactionAdmin
from .bill import BillAdmin, CreditorAdmin, PaymentAdmin, PurchaseAdmin
from .business import BusinessAdmin, UserAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import BillItemInline, ChatMessageInline, InvoiceItemInline
from .invoice import DebtorAdmin, InvoiceAdmin, PaymentReceiptAdmin
from .mixins import TenantAdminMixin

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

import books_core.managers


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Business",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("address", models.TextField(blank=True, default="")),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("tax_id", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="businesses", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "businesses",
                "constraints": [models.UniqueConstraint(fields=("owner", "name"), name="uq_owner_business_name")],
            },
        ),
        migrations.AddField(
            model_name="user",
            name="default_business",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="default_users", to="books_core.business"),
        ),
        migrations.CreateModel(
            name="Debtor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("address", models.TextField(blank=True, default="")),
                ("outstanding_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("opening_outstanding", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "name"], name="debtor_business_name_idx")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Creditor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("address", models.TextField(blank=True, default="")),
                ("outstanding_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("opening_outstanding", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "name"], name="creditor_business_name_idx")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("invoice_number", models.CharField(max_length=64)),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("OVERDUE", "Overdue")], default="PENDING", max_length=10)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("debtor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="invoices", to="books_core.debtor")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["business", "debtor"], name="inv_business_debtor_idx"),
                    models.Index(fields=["business", "status", "due_date"], name="inv_business_status_due_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("business", "invoice_number"), name="uq_invoice_business_number")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField()),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="books_core.invoice")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "invoice"], name="invitem_business_invoice_idx")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("bill_number", models.CharField(max_length=64)),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("OVERDUE", "Overdue")], default="PENDING", max_length=10)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("creditor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="bills", to="books_core.creditor")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["business", "creditor"], name="bill_business_creditor_idx"),
                    models.Index(fields=["business", "status", "due_date"], name="bill_business_status_due_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("business", "bill_number"), name="uq_bill_business_number")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField()),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="books_core.bill")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "bill"], name="billitem_business_bill_idx")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Purchase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("purchase_number", models.CharField(max_length=64)),
                ("item_name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("purchase_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("creditor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="purchases", to="books_core.creditor")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "creditor"], name="purchase_business_creditor_idx")],
                "constraints": [models.UniqueConstraint(fields=("business", "purchase_number"), name="uq_purchase_business_number")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("name", models.CharField(max_length=200)),
                ("account_number", models.CharField(blank=True, default="", max_length=50)),
                ("account_type", models.CharField(choices=[("checking", "Checking"), ("savings", "Savings"), ("current", "Current"), ("credit_card", "Credit Card"), ("cash", "Cash"), ("other", "Other")], default="checking", max_length=20)),
                ("opening_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("current_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("last_reconciled_at", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("business", "name"), name="uq_business_bankaccount_name")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transaction_number", models.CharField(max_length=64)),
                ("type", models.CharField(choices=[("deposit", "Deposit"), ("withdrawal", "Withdrawal"), ("transfer", "Transfer")], max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("reference_type", models.CharField(blank=True, choices=[("payment", "Payment"), ("receipt", "Payment receipt"), ("transaction", "Transfer source")], default="", max_length=20)),
                ("reference_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("reconciled", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name="transactions", to="books_core.bankaccount")),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["business", "account"], name="tx_business_account_idx"),
                    models.Index(fields=["business", "date"], name="tx_business_date_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="tx_reference_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("reference_id__isnull", False)), fields=("business", "reference_type", "reference_id"), name="uq_tx_business_reference"),
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="tx_positive_amount"),
                ],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("cheque", "Cheque"), ("bank_transfer", "Bank Transfer"), ("card", "Card"), ("other", "Other")], default="other", max_length=20)),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("payment_number", models.CharField(max_length=64)),
                ("bank_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="%(class)ss", to="books_core.bankaccount")),
                ("bill", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="books_core.bill")),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("creditor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="payments", to="books_core.creditor")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "creditor"], name="payment_business_creditor_idx")],
                "constraints": [models.UniqueConstraint(fields=("business", "payment_number"), name="uq_payment_business_number")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="PaymentReceipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField(default=1)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("cheque", "Cheque"), ("bank_transfer", "Bank Transfer"), ("card", "Card"), ("other", "Other")], default="other", max_length=20)),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("receipt_number", models.CharField(max_length=64)),
                ("bank_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="%(class)ss", to="books_core.bankaccount")),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("debtor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="receipts", to="books_core.debtor")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="receipts", to="books_core.invoice")),
            ],
            options={
                "indexes": [models.Index(fields=["business", "debtor"], name="receipt_business_debtor_idx")],
                "constraints": [models.UniqueConstraint(fields=("business", "receipt_number"), name="uq_receipt_business_number")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="AssistantSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("api_key", models.CharField(blank=True, default="", max_length=255)),
                ("model", models.CharField(default="gpt-4o-mini", max_length=100)),
                ("temperature", models.FloatField(default=0.7)),
                ("max_tokens", models.PositiveIntegerField(default=2000)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="assistant_settings", to="books_core.business")),
            ],
            options={
                "verbose_name_plural": "assistant settings",
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Chat",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(default="New Chat", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="books_core.business")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="chats", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["business", "user"], name="chat_business_user_idx")],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="ChatMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("user", "User"), ("assistant", "Assistant")], max_length=20)),
                ("content", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("chat", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="messages", to="books_core.chat")),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="ApiRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("endpoint", models.CharField(max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="api_requests", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="books_core.business")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["business", "user"], name="auditlog_business_user_idx"),
                    models.Index(fields=["business", "created_at"], name="auditlog_business_created_idx"),
                ],
            },
            managers=[
                ("objects", books_core.managers.TenantManager()),
            ],
        ),
    ]

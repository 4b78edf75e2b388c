import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from books_core.models import Business, Creditor, Debtor
from books_core.services.banking import create_bank_account, record_transaction
from books_core.services.documents import (create_bill, create_invoice,
                                           create_purchase)
from books_core.services.payments import create_payment, create_receipt

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo owner, business and sample books "
        "(parties, invoices, bills, payments, bank account)."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--business",  # Define flag
            default="Demo Traders",
            help="Name of the demo business (default: Demo Traders)",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo owner."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo owner."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        business_name = options["business"]
        username = options["username"]
        password = options["password"]

        # 1. Owner
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:  # if user newly created
            user.set_password(password)
            user.save()
            self.stdout.write(
                self.style.SUCCESS(f"Created user: {user.username} (pw={password})"))

        # 2. Business
        business, created = Business.objects.get_or_create(
            owner=user,
            name=business_name,
            defaults={"email": f"accounts@{username}.example.com"},
        )
        if not created:
            self.stdout.write(self.style.WARNING(
                f"Business {business} already exists, nothing to seed."))
            return
        user.default_business = business
        user.save(update_fields=["default_business"])
        self.stdout.write(self.style.SUCCESS(f"Created business: {business}"))

        today = datetime.date.today()

        # 3. Parties
        debtor = Debtor.objects.create(
            business=business, name="Acme Retail", email="ap@acme.example.com")
        creditor = Creditor.objects.create(
            business=business, name="Paper Supplies Co", email="billing@paper.example.com")
        self.stdout.write(self.style.SUCCESS("Created debtor and creditor"))

        # 4. Bank account
        account = create_bank_account(
            business, name="Main Checking", account_number="000123456789",
            opening_balance=Decimal("5000.00"), user=user)

        # 5. Documents, each moving the party balances through the services
        invoice = create_invoice(
            business,
            debtor=debtor,
            issue_date=today,
            due_date=today + datetime.timedelta(days=30),
            items=[
                {"description": "Consulting", "quantity": Decimal("10"),
                 "unit_price": Decimal("100.00")},
                {"description": "Setup fee", "quantity": Decimal("1"),
                 "unit_price": Decimal("250.00")},
            ],
            user=user,
        )
        bill = create_bill(
            business,
            creditor=creditor,
            issue_date=today,
            due_date=today + datetime.timedelta(days=14),
            items=[{"description": "Printer paper", "quantity": Decimal("20"),
                    "unit_price": Decimal("12.50")}],
            user=user,
        )
        create_purchase(
            business,
            creditor=creditor,
            item_name="Toner",
            quantity=Decimal("2"),
            unit_price=Decimal("45.00"),
            purchase_date=today,
            user=user,
        )
        self.stdout.write(self.style.SUCCESS(
            f"Created {invoice.invoice_number}, {bill.bill_number} and a purchase"))

        # 6. Settlements (bank transfers create mirrored transactions)
        create_receipt(
            business,
            debtor=debtor,
            invoice=invoice,
            amount=Decimal("500.00"),
            payment_date=today,
            payment_method="bank_transfer",
            bank_account=account,
            user=user,
        )
        create_payment(
            business,
            creditor=creditor,
            bill=bill,
            amount=bill.total_amount,
            payment_date=today,
            payment_method="bank_transfer",
            bank_account=account,
            user=user,
        )
        record_transaction(
            business,
            account=account,
            type="withdrawal",
            amount=Decimal("35.00"),
            date=today,
            description="Bank charges",
            category="Fees",
            user=user,
        )
        account.refresh_from_db()
        self.stdout.write(self.style.SUCCESS(
            f"Recorded settlements; {account.name} balance {account.current_balance}"))
        self.stdout.write(self.style.SUCCESS("Demo business setup complete!"))

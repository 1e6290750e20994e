"""
Customer onboarding and wallet operations that touch several apps:
equipment from inventory, invoices and payments from fin_app and
notifications from messenger.
"""
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from customers.models import Customer, CustomerStatus, WorkflowStage
from fin_app.models import Invoice, InvoiceType, Payment, PaymentMethod, PaymentStatus, get_vat_rate
from inventory.models import InventoryItem
from ispdesk.lib import LogicError, safe_decimal
from ispdesk.lib.logger import logger
from messenger.tasks import notify_customer, NotificationType
from profiles.models import UserProfileLogActionType


def get_installation_fee() -> Decimal:
    return Decimal(str(getattr(settings, 'INSTALLATION_FEE', '5000')))


def approve_customer(customer: Customer, equipment: InventoryItem, author=None,
                     notes: Optional[str] = None) -> Invoice:
    """
    Approve registered customer: assign equipment to him and
    issue installation invoice.
    :return: installation invoice
    """
    if customer.status not in (CustomerStatus.PENDING, CustomerStatus.REJECTED):
        raise LogicError(_('Only pending or rejected customers can be approved'))
    if equipment.site_id and customer.site_id and equipment.site_id != customer.site_id:
        raise LogicError(_('Equipment belongs to another site'))

    with transaction.atomic():
        now = timezone.now()
        customer.set_status(
            CustomerStatus.APPROVED,
            approved_by=author,
            approved_at=now,
            rejection_reason=''
        )
        customer.get_workflow().move_to(
            WorkflowStage.APPROVED,
            author=author,
            notes=notes,
            equipment_id=equipment.pk
        )
        equipment.assign_to(customer=customer, author=author, notes=notes or '')
        invoice = Invoice.create_for(
            customer=customer,
            amount=get_installation_fee(),
            invoice_type=InvoiceType.INSTALLATION,
            vat_rate=get_vat_rate(),
            equipment_details={
                'id': equipment.pk,
                'name': equipment.name,
                'model': equipment.model,
                'serial_number': equipment.serial_number,
                'mac_address': equipment.mac_address,
            },
            notes=notes or ''
        )
        if author is not None:
            author.log(
                do_type=UserProfileLogActionType.APPROVE_CUSTOMER,
                additional_text='"%s", equipment "%s"' % (customer.name, equipment.name)
            )
    logger.info('Customer %d approved, invoice %s' % (customer.pk, invoice.invoice_number))
    notify_customer(customer, NotificationType.ACCOUNT_APPROVED, {
        'invoice_number': invoice.invoice_number,
        'amount': invoice.total_amount,
    })
    return invoice


def reject_customer(customer: Customer, reason: str, author=None) -> None:
    if not reason:
        raise LogicError(_('Rejection reason is required'))
    with transaction.atomic():
        customer.set_status(
            CustomerStatus.REJECTED,
            rejected_by=author,
            rejected_at=timezone.now(),
            rejection_reason=reason
        )
        customer.get_workflow().move_to(
            WorkflowStage.REJECTED,
            author=author,
            rejection_reason=reason
        )
        if author is not None:
            author.log(
                do_type=UserProfileLogActionType.REJECT_CUSTOMER,
                additional_text='"%s": %s' % (customer.name, reason)
            )


def try_auto_renew(customer: Customer) -> bool:
    """Renew finished subscription when wallet has enough money"""
    if customer.status not in (CustomerStatus.APPROVED, CustomerStatus.ACTIVE, CustomerStatus.SUSPENDED):
        return False
    if customer.is_subscription_active():
        return False
    rate = customer.get_rate()
    if rate <= 0 or customer.wallet_balance < rate:
        return False
    customer.renew_subscription()
    notify_customer(customer, NotificationType.SERVICE_RENEWAL, {
        'amount': rate,
        'expiry_date': timezone.localtime(customer.subscription_end).strftime('%Y-%m-%d'),
    })
    return True


def credit_wallet(customer: Customer, amount, payment_method=PaymentMethod.CASH,
                  reference_number: Optional[str] = None, mpesa_receipt_number: Optional[str] = None,
                  description: Optional[str] = None, invoice: Optional[Invoice] = None,
                  author=None) -> dict:
    """
    Put money on customer wallet, record completed payment
    and renew subscription if it finished and money is enough.
    :return: dict with new_balance and auto_renewed flag
    """
    amount = safe_decimal(amount)
    if amount is None or amount <= 0:
        raise LogicError(_('Amount must be positive'))
    with transaction.atomic():
        customer.add_balance(
            amount=amount,
            description=description or _('Wallet top up'),
            reference_number=reference_number,
            mpesa_receipt_number=mpesa_receipt_number
        )
        Payment.objects.create(
            site=customer.site,
            customer=customer,
            invoice=invoice,
            amount=amount,
            payment_method=payment_method,
            status=PaymentStatus.COMPLETED,
            reference_number=reference_number,
            mpesa_receipt_number=mpesa_receipt_number,
            phone=customer.mpesa_number or customer.phone,
            notes=description or ''
        )
        if author is not None:
            author.log(
                do_type=UserProfileLogActionType.CREDIT_WALLET,
                additional_text='"%s", %s' % (customer.name, amount)
            )
        auto_renewed = try_auto_renew(customer)
    return {
        'new_balance': customer.wallet_balance,
        'auto_renewed': auto_renewed,
    }

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ispdesk.lib import LogicError, local_phone, normalize_msisdn
from ispdesk.lib.validators import telephoneValidator
from ispdesk.models import BaseAbstractModel, SiteOwnedModel
from services.models import Service
from customers import custom_signals


class CustomerStatus(models.TextChoices):
    PENDING = 'pending', _('Pending approval')
    APPROVED = 'approved', _('Approved')
    REJECTED = 'rejected', _('Rejected')
    ACTIVE = 'active', _('Active')
    SUSPENDED = 'suspended', _('Suspended')


class ConnectionType(models.TextChoices):
    PPPOE = 'pppoe', _('PPPoE')
    STATIC = 'static', _('Static IP')
    HOTSPOT = 'hotspot', _('Hotspot')


class CustomerQuerySet(models.QuerySet):
    def by_phone(self, phone: str):
        """Search by phone or by M-Pesa number in any of its forms"""
        loc = local_phone(phone)
        intl = normalize_msisdn(phone)
        return self.filter(
            models.Q(phone__in=(loc, intl, '+' + intl)) |
            models.Q(mpesa_number__in=(loc, intl, '+' + intl))
        )

    def active(self):
        return self.filter(status=CustomerStatus.ACTIVE)


class Customer(SiteOwnedModel):
    name = models.CharField(_('Name'), max_length=256)
    email = models.EmailField(_('Email'), blank=True, default='')
    phone = models.CharField(_('Telephone'), max_length=16, validators=(telephoneValidator,))
    mpesa_number = models.CharField(_('M-Pesa number'), max_length=16, blank=True, default='')
    id_number = models.CharField(_('National ID number'), max_length=32, blank=True, default='')
    address = models.CharField(_('Address'), max_length=256, blank=True, default='')
    county = models.CharField(_('County'), max_length=64, blank=True, default='')
    sub_county = models.CharField(_('Sub county'), max_length=64, blank=True, default='')
    connection_type = models.CharField(
        _('Connection type'), max_length=16,
        choices=ConnectionType.choices, default=ConnectionType.PPPOE
    )
    service = models.ForeignKey(
        Service, on_delete=models.SET_NULL,
        verbose_name=_('Service'), blank=True, null=True, default=None
    )
    monthly_rate = models.DecimalField(
        _('Monthly rate'), max_digits=10, decimal_places=2,
        default=Decimal(0), help_text=_('When zero, the service cost is used')
    )
    status = models.CharField(
        _('Status'), max_length=16,
        choices=CustomerStatus.choices, default=CustomerStatus.PENDING
    )
    wallet_balance = models.DecimalField(_('Wallet balance'), max_digits=12, decimal_places=2, default=Decimal(0))
    subscription_start = models.DateTimeField(_('Subscription start'), blank=True, null=True, default=None)
    subscription_end = models.DateTimeField(_('Subscription end'), blank=True, null=True, default=None)
    disconnection_scheduled_at = models.DateTimeField(
        _('Disconnection scheduled at'), blank=True, null=True, default=None
    )
    last_reminder_at = models.DateTimeField(blank=True, null=True, default=None)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        related_name='approved_customers', blank=True, null=True, default=None
    )
    approved_at = models.DateTimeField(blank=True, null=True, default=None)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        related_name='rejected_customers', blank=True, null=True, default=None
    )
    rejected_at = models.DateTimeField(blank=True, null=True, default=None)
    rejection_reason = models.TextField(_('Rejection reason'), blank=True, default='')
    create_date = models.DateTimeField(_('Create date'), auto_now_add=True)

    objects = CustomerQuerySet.as_manager()

    def get_rate(self) -> Decimal:
        if self.monthly_rate and self.monthly_rate > 0:
            return self.monthly_rate
        if self.service is not None:
            return self.service.cost
        return Decimal(0)

    def is_subscription_active(self, now=None) -> bool:
        now = now or timezone.now()
        return bool(self.subscription_end and self.subscription_end > now)

    def set_status(self, new_status: str, **extra_fields) -> None:
        """
        Change status and notify listeners about it.
        :param new_status: CustomerStatus choice
        :param extra_fields: other fields to update with the same query
        """
        old_status = self.status
        self.status = new_status
        for fname, fval in extra_fields.items():
            setattr(self, fname, fval)
        self.save(update_fields=['status', *extra_fields.keys()])
        if old_status != new_status:
            custom_signals.customer_status_changed.send(
                sender=Customer,
                instance=self,
                old_status=old_status,
                new_status=new_status
            )

    def activate(self) -> None:
        self.set_status(CustomerStatus.ACTIVE, disconnection_scheduled_at=None)

    def suspend(self) -> None:
        self.set_status(CustomerStatus.SUSPENDED, disconnection_scheduled_at=None)

    def add_balance(self, amount: Decimal, description: str, reference_number: Optional[str] = None,
                    mpesa_receipt_number: Optional[str] = None) -> 'WalletTransaction':
        """
        Credit the wallet.
        :param amount: positive amount
        :param description: text for wallet history
        :param reference_number: external reference, invoice number for example
        :param mpesa_receipt_number: receipt from M-Pesa if paid by it
        :return: created WalletTransaction
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise LogicError(_('Amount must be positive'))
        with transaction.atomic():
            Customer.objects.filter(pk=self.pk).update(wallet_balance=F('wallet_balance') + amount)
            self.refresh_from_db(fields=['wallet_balance'])
            trans = WalletTransaction.objects.create(
                customer=self,
                site=self.site,
                transaction_type=WalletTransactionType.CREDIT,
                amount=amount,
                description=description,
                reference_number=reference_number,
                mpesa_receipt_number=mpesa_receipt_number,
                balance_after=self.wallet_balance
            )
        return trans

    def debit_balance(self, amount: Decimal, description: str,
                      reference_number: Optional[str] = None) -> 'WalletTransaction':
        amount = Decimal(amount)
        with transaction.atomic():
            updated = Customer.objects.filter(
                pk=self.pk, wallet_balance__gte=amount
            ).update(wallet_balance=F('wallet_balance') - amount)
            if not updated:
                raise LogicError(_('Not enough money in wallet'))
            self.refresh_from_db(fields=['wallet_balance'])
            return WalletTransaction.objects.create(
                customer=self,
                site=self.site,
                transaction_type=WalletTransactionType.DEBIT,
                amount=amount,
                description=description,
                reference_number=reference_number,
                balance_after=self.wallet_balance
            )

    def renew_subscription(self, now=None) -> 'WalletTransaction':
        """
        Pay the monthly rate from wallet and extend subscription.
        Subscription is extended from its end when it is not finished yet.
        """
        now = now or timezone.now()
        rate = self.get_rate()
        if rate <= 0:
            raise LogicError(_('Customer has no rate to renew'))
        if self.wallet_balance < rate:
            raise LogicError(_('Not enough money in wallet'))
        duration = self.service.duration_days if self.service else 30
        with transaction.atomic():
            trans = self.debit_balance(
                amount=rate,
                description=_('Subscription renewal')
            )
            start = self.subscription_end if self.is_subscription_active(now) else now
            self.subscription_start = start
            self.subscription_end = start + timedelta(days=duration)
            self.save(update_fields=['subscription_start', 'subscription_end'])
            self.activate()
        return trans

    def get_workflow(self) -> "ClientWorkflowStatus":
        wf, _created = ClientWorkflowStatus.objects.get_or_create(customer=self)
        return wf

    def __str__(self):
        return "%s (%s)" % (self.name, self.phone)

    class Meta:
        db_table = 'customers'
        verbose_name = _('Customer')
        verbose_name_plural = _('Customers')
        ordering = ('name',)


class WalletTransactionType(models.TextChoices):
    CREDIT = 'credit', _('Credit')
    DEBIT = 'debit', _('Debit')


class WalletTransaction(SiteOwnedModel):
    # Customer is empty for payments that did not match anybody
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE,
        related_name='wallet_transactions', blank=True, null=True, default=None
    )
    transaction_type = models.CharField(max_length=8, choices=WalletTransactionType.choices)
    amount = models.DecimalField(_('Amount'), max_digits=12, decimal_places=2)
    description = models.CharField(_('Description'), max_length=256, blank=True, default='')
    reference_number = models.CharField(max_length=64, blank=True, null=True, default=None)
    mpesa_receipt_number = models.CharField(max_length=32, blank=True, null=True, default=None)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, default=None)
    create_time = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return "%s %s" % (self.get_transaction_type_display(), self.amount)

    class Meta:
        db_table = 'wallet_transactions'
        ordering = ('-create_time',)


class WorkflowStage(models.TextChoices):
    PENDING_APPROVAL = 'pending_approval', _('Pending approval')
    APPROVED = 'approved', _('Approved')
    REJECTED = 'rejected', _('Rejected')
    INSTALLATION = 'installation', _('Installation')
    ACTIVE = 'active', _('Active')


class ClientWorkflowStatus(BaseAbstractModel):
    customer = models.OneToOneField(Customer, on_delete=models.CASCADE, related_name='workflow')
    current_stage = models.CharField(
        max_length=32, choices=WorkflowStage.choices,
        default=WorkflowStage.PENDING_APPROVAL
    )
    stage_data = models.JSONField(default=dict, blank=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        blank=True, null=True, default=None
    )
    notes = models.TextField(blank=True, default='')
    completed_at = models.DateTimeField(blank=True, null=True, default=None)
    update_time = models.DateTimeField(auto_now=True)

    def move_to(self, stage: str, author=None, notes: Optional[str] = None, **stage_data) -> None:
        self.current_stage = stage
        self.stage_data = stage_data
        self.assigned_to = author
        if notes:
            self.notes = notes
        self.completed_at = timezone.now()
        self.save()

    def __str__(self):
        return "%s: %s" % (self.customer, self.get_current_stage_display())

    class Meta:
        db_table = 'client_workflow_status'

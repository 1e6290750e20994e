import secrets
import string
import time
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.db import models
from django.db.models.functions import TruncDay, TruncWeek, TruncMonth
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from rest_framework.exceptions import ParseError

from ispdesk.lib import safe_int
from ispdesk.models import SiteOwnedModel
try:
    from customers.models import Customer
except ImportError as imperr:
    from django.core.exceptions import ImproperlyConfigured

    raise ImproperlyConfigured(
        '"fin_app" application depends on "customers" '
        'application. Check if it installed'
    ) from imperr


_base36 = string.digits + string.ascii_uppercase


def generate_invoice_number() -> str:
    rnd = ''.join(secrets.choice(_base36) for _i in range(9))
    return "INV-%d-%s" % (int(time.time() * 1000), rnd)


def _money(val) -> Decimal:
    return Decimal(val).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class InvoiceType(models.TextChoices):
    SUBSCRIPTION = 'subscription', _('Subscription')
    INSTALLATION = 'installation', _('Installation')
    RENEWAL = 'renewal', _('Renewal')


class InvoiceStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    PAID = 'paid', _('Paid')
    OVERDUE = 'overdue', _('Overdue')
    CANCELLED = 'cancelled', _('Cancelled')


class Invoice(SiteOwnedModel):
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='invoices')
    invoice_number = models.CharField(_('Invoice number'), max_length=64, unique=True,
                                      default=generate_invoice_number)
    invoice_type = models.CharField(max_length=16, choices=InvoiceType.choices, default=InvoiceType.SUBSCRIPTION)
    amount = models.DecimalField(_('Amount'), max_digits=12, decimal_places=2)
    vat_amount = models.DecimalField(_('VAT'), max_digits=12, decimal_places=2, default=Decimal(0))
    total_amount = models.DecimalField(_('Total'), max_digits=12, decimal_places=2)
    due_date = models.DateTimeField(_('Due date'))
    service_period_start = models.DateTimeField(blank=True, null=True, default=None)
    service_period_end = models.DateTimeField(blank=True, null=True, default=None)
    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.PENDING)
    equipment_details = models.JSONField(blank=True, null=True, default=None)
    notes = models.TextField(blank=True, default='')
    paid_at = models.DateTimeField(blank=True, null=True, default=None)
    create_time = models.DateTimeField(auto_now_add=True)

    @classmethod
    def create_for(cls, customer: Customer, amount, invoice_type=InvoiceType.SUBSCRIPTION,
                   vat_rate=None, due_date: Optional[datetime] = None, **other) -> 'Invoice':
        """
        Make invoice for customer, VAT is calculated from vat_rate.
        :param customer: customers.models.Customer instance
        :param amount: amount without VAT
        :param invoice_type: InvoiceType choice
        :param vat_rate: VAT part, for example 0.16. Zero when None.
        :param due_date: when pay expected, in 30 days by default
        """
        amount = _money(amount)
        vat_amount = _money(amount * Decimal(str(vat_rate))) if vat_rate else Decimal(0)
        return cls.objects.create(
            site=customer.site,
            customer=customer,
            invoice_type=invoice_type,
            amount=amount,
            vat_amount=vat_amount,
            total_amount=amount + vat_amount,
            due_date=due_date or timezone.now() + timedelta(days=30),
            **other
        )

    def mark_paid(self) -> None:
        self.status = InvoiceStatus.PAID
        self.paid_at = timezone.now()
        self.save(update_fields=['status', 'paid_at'])

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    def __str__(self):
        return self.invoice_number

    class Meta:
        db_table = 'invoices'
        verbose_name = _('Invoice')
        verbose_name_plural = _('Invoices')
        ordering = ('-create_time',)


class PaymentMethod(models.TextChoices):
    MPESA = 'mpesa', _('M-Pesa')
    BANK = 'bank', _('Bank')
    FAMILY_BANK = 'family_bank', _('Family Bank')
    CASH = 'cash', _('Cash')


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    COMPLETED = 'completed', _('Completed')
    FAILED = 'failed', _('Failed')


class Payment(SiteOwnedModel):
    customer = models.ForeignKey(
        Customer, on_delete=models.SET_NULL, related_name='payments',
        blank=True, null=True, default=None
    )
    invoice = models.ForeignKey(
        Invoice, on_delete=models.SET_NULL, related_name='payments',
        blank=True, null=True, default=None
    )
    amount = models.DecimalField(_('Amount'), max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.MPESA)
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    # CheckoutRequestID for STK push
    reference_number = models.CharField(max_length=128, blank=True, null=True, default=None, db_index=True)
    mpesa_receipt_number = models.CharField(max_length=32, blank=True, null=True, default=None, unique=True)
    phone = models.CharField(max_length=16, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    payment_date = models.DateTimeField(auto_now_add=True)
    update_time = models.DateTimeField(auto_now=True)

    def __str__(self):
        return "%s %s %s" % (self.get_payment_method_display(), self.amount, self.get_status_display())

    class Meta:
        db_table = 'payments'
        verbose_name = _('Payment')
        verbose_name_plural = _('Payments')
        ordering = ('-payment_date',)


def report_by_pays(from_time: Optional[datetime], to_time: Optional[datetime] = None,
                   site=None, group_by=0, limit=50):
    group_by = safe_int(group_by)
    if not group_by:
        raise ParseError('Bad value in "group_by" param')

    if not from_time:
        raise ParseError('from_time is required')

    flds = {
        1: {
            # group by day
            'field': "date_trunk",
            'annotate': {'date_trunk': TruncDay('payment_date', output_field=models.DateField())}
        },
        2: {
            # group by week
            'field': "date_trunk",
            'annotate': {'date_trunk': TruncWeek('payment_date', output_field=models.DateField())}
        },
        3: {
            # group by mon
            'field': "date_trunk",
            'annotate': {'date_trunk': TruncMonth('payment_date', output_field=models.DateField())}
        },
        4: {
            # group by customers
            'field': "customer__name",
            'related_fields': ['customer__id', 'customer__phone']
        },
    }

    query_opt = flds.get(group_by)
    if query_opt is None:
        raise ParseError('Bad value in "group_by" param')

    field_name = query_opt['field']
    annotation = query_opt.get('annotate', {})

    qs = Payment.objects.filter(
        payment_date__gte=from_time,
        status=PaymentStatus.COMPLETED
    )
    if site is not None:
        qs = qs.filter(site=site)
    if to_time is not None:
        qs = qs.filter(payment_date__lte=to_time)
    related_fields = query_opt.get('related_fields', [])

    qs = qs.annotate(**annotation).values(
        *([field_name] + related_fields)
    ).annotate(
        summ=models.Sum('amount'),
        pay_count=models.Count('amount'),
    ).order_by(field_name)

    for item in qs[:limit].iterator():
        yield {
            'summ': item['summ'],
            'pay_count': item['pay_count'],
            **{field_name: item[field_name]},
            **{f: item[f] for f in related_fields}
        }


def get_vat_rate() -> Decimal:
    return Decimal(str(getattr(settings, 'VAT_RATE', '0.16')))

from django.contrib.auth.models import BaseUserManager, AbstractBaseUser, PermissionsMixin
from django.contrib.sites.models import Site
from django.db import models
from django.utils.translation import gettext_lazy as _

from ispdesk.lib.validators import latinValidator, telephoneValidator
from ispdesk.models import BaseAbstractModel


class UserProfileManager(BaseUserManager):
    def create_user(self, telephone, username, password=None, is_save=True, **other_fields):
        """
        Creates and saves a staff account with the given telephone,
        username and password.
        """
        if not telephone:
            raise ValueError(_('Users must have an telephone number'))

        user = self.model(
            telephone=telephone,
            username=username,
            **other_fields
        )
        user.is_admin = True

        if password:
            user.set_password(password)
        if is_save:
            user.save(using=self._db)
        return user

    def create_superuser(self, telephone, username, password=None, is_save=True, **other_fields):
        user = self.create_user(
            telephone,
            password=password,
            username=username,
            is_save=False,
            **other_fields
        )
        user.is_superuser = True
        if is_save:
            user.save(using=self._db)
        return user


class UserProfile(AbstractBaseUser, PermissionsMixin):
    username = models.CharField(
        _('profile username'),
        max_length=127,
        unique=True,
        validators=(latinValidator,)
    )
    fio = models.CharField(_('fio'), max_length=256, blank=True, default='')
    create_date = models.DateField(_('Create date'), auto_now_add=True)
    is_active = models.BooleanField(_('Is active'), default=True)
    is_admin = models.BooleanField(default=False)
    telephone = models.CharField(
        max_length=16,
        verbose_name=_('Telephone'),
        blank=True,
        null=True,
        default=None,
        validators=(telephoneValidator,)
    )
    email = models.EmailField(default='', blank=True)
    sites = models.ManyToManyField(Site, blank=True)

    USERNAME_FIELD = 'username'
    REQUIRED_FIELDS = ('telephone',)

    objects = UserProfileManager()

    def get_full_name(self):
        return self.fio if self.fio else self.username

    def get_short_name(self):
        return self.username or self.telephone

    @property
    def is_staff(self):
        """ Is the user a member of staff?"""
        # Simplest possible answer: All admins are staff
        return self.is_admin

    def log(self, do_type, additional_text=None) -> None:
        """
        Make log about administrator actions.
        :param do_type: Choice from UserProfileLogActionType
        :param additional_text: Additional information for action
        :return: None
        """
        UserProfileLog.objects.create(
            account=self,
            do_type=do_type,
            additional_text=additional_text[:512] if additional_text else additional_text
        )

    def __str__(self):
        return self.get_full_name()

    class Meta:
        verbose_name = _('Staff account profile')
        verbose_name_plural = _('Staff account profiles')
        ordering = 'username',
        db_table = 'profiles_userprofile'


class UserProfileLogActionType(models.IntegerChoices):
    UNDEFINED = 0, _('Undefined')
    CREATE_CUSTOMER = 1, _('Create customer')
    DELETE_CUSTOMER = 2, _('Delete customer')
    APPROVE_CUSTOMER = 3, _('Approve customer')
    REJECT_CUSTOMER = 4, _('Reject customer')
    CREATE_NAS = 5, _('Create NAS')
    DELETE_NAS = 6, _('Delete NAS')
    CREATE_ROUTER = 7, _('Create router')
    DELETE_ROUTER = 8, _('Delete router')
    REGISTER_NAS = 9, _('Register NAS from inventory')
    GENERATE_CREDENTIALS = 10, _('Generate radius credentials')
    DISCONNECT_SESSION = 11, _('Disconnect session')
    CREDIT_WALLET = 12, _('Credit wallet')
    CREATE_SERVICE = 13, _('Create service')
    DELETE_SERVICE = 14, _('Delete service')


class UserProfileLog(BaseAbstractModel):
    account = models.ForeignKey(UserProfile, on_delete=models.CASCADE, verbose_name=_('Author'))
    do_type = models.PositiveSmallIntegerField(_('Action type'), choices=UserProfileLogActionType.choices,
                                               default=UserProfileLogActionType.UNDEFINED)
    additional_text = models.CharField(_('Additional info'), blank=True, null=True, max_length=512)
    action_date = models.DateTimeField(_('Action date'), auto_now_add=True)

    def __str__(self):
        return self.get_do_type_display()

    class Meta:
        ordering = '-action_date',
        verbose_name = _('User profile log')
        verbose_name_plural = _('User profile logs')
        db_table = 'profiles_userprofilelog'

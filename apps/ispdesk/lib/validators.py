from django.core.validators import RegexValidator
from django.conf import settings

tel_regexp_str = getattr(settings, "TELEPHONE_REGEXP", r"^(\+?\d{9,15})?$")

latinValidator = RegexValidator(r"^[\w.@+-]{1,127}$")
telephoneValidator = RegexValidator(tel_regexp_str)
shortnameValidator = RegexValidator(r"^[a-zA-Z0-9_-]{1,32}$")

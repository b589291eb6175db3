from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from algorithms.availability.timezone_utils import is_valid_timezone


def validate_timezone(value):
    """Reject anything that is not a known IANA timezone name"""
    if not is_valid_timezone(value):
        raise ValidationError(
            _("'%(value)s' is not a known timezone"), params={"value": value}
        )

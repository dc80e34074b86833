"""
Core utility functions shared by the payment and rentals apps.
"""
import re

_NON_DIALABLE_RE = re.compile(r'[^\d+]')


def normalize_phone(msisdn) -> str:
    """
    Normalize a Kenyan MSISDN to the 254XXXXXXXXX form used for matching.

    Local numbers (07..., 01...) get the country code, a leading '+' is
    dropped, and anything unrecognised is returned with only digits kept
    (plus a leading '+'). The fallback is best effort: malformed numbers
    pass through and simply fail to match a tenant.
    """
    if msisdn is None:
        return ''
    msisdn = _NON_DIALABLE_RE.sub('', str(msisdn))
    # Only a leading '+' is meaningful
    msisdn = msisdn[:1] + msisdn[1:].replace('+', '')

    if msisdn.startswith(('07', '01')):
        return '254' + msisdn[1:]
    if msisdn.startswith('+'):
        return msisdn[1:]
    return msisdn

import secrets

# Upper bound on code length; sizes the stored column and the login request field.
MAX_CODE_LENGTH = 16


def generate_code(length: int, allow_leading_zero: bool = True) -> str:
    """Return a random string of exactly ``length`` decimal digits.

    Digits come from :mod:`secrets`. With ``allow_leading_zero=False`` the
    first digit is never ``0``.
    """
    if allow_leading_zero:
        value = secrets.randbelow(10**length)
        return str(value).zfill(length)
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(10**length - low))

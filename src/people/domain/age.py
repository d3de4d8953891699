"""Age derivation. Pure: the current date is always passed in."""

from datetime import date

MAX_AGE = 150


def compute_age(birthday: date | None, today: date) -> int | None:
    """Whole years elapsed between birthday and today, or None.

    A birthday whose month/day falls after today's has not happened yet this
    year. Results outside [0, MAX_AGE] are treated as unknown rather than
    rejected, so a bad stored birthday never breaks a read.
    """
    if birthday is None:
        return None
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    if years < 0 or years > MAX_AGE:
        return None
    return years

"""
Basic usage of bestbefore decorators.

Run with a pinned month to see each verdict:

    BESTBEFORE_DATE=02.2023 python examples/basic_usage.py   # all pass
    BESTBEFORE_DATE=04.2024 python examples/basic_usage.py   # warnings
    BESTBEFORE_DATE=01.2031 python examples/basic_usage.py   # CodeExpiredError at import

Or check statically without importing:

    bestbefore check examples/ --date 01.2031
"""

import warnings

from bestbefore import bestbefore

warnings.simplefilter("always")


# Warns when used after March 2024
@bestbefore("03.2024")
def future_warning():
    print("This function will have a warning after March 2024")


# Warns after January 2026, refuses to load after December 2030
@bestbefore("01.2026", expires="12.2030")
def expired_function():
    print("This function fails to load after December 2030")


# Custom warning text
@bestbefore("02.2023", message="Please use new_api() instead")
def deprecated_with_message():
    print("This function has a custom warning message")


@bestbefore("01.2023")
class OldStructure:
    def __init__(self, field: str):
        self.field = field


def main():
    future_warning()
    expired_function()
    deprecated_with_message()

    old = OldStructure("test")
    print(f"Old structure field: {old.field}")


if __name__ == "__main__":
    main()

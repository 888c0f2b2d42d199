"""
Policies with only an expiration date.

There is no warning phase: the code is silent until the month after the
expiry date, then it refuses to load.

    BESTBEFORE_DATE=01.2028 python examples/expires_only.py   # passes
    BESTBEFORE_DATE=02.2028 python examples/expires_only.py   # CodeExpiredError
"""

from bestbefore import bestbefore, bestbefore_module

bestbefore_module(__name__, expires="01.2029", message="examples.expires_only is scheduled for removal")


@bestbefore(expires="01.2028")
def function_with_only_expiration_date():
    print("This function fails to load after January 2028")


@bestbefore(expires="01.2028", message="This code must be removed by 2028")
def expiration_with_custom_message():
    print("This function fails to load with a custom message after January 2028")


if __name__ == "__main__":
    function_with_only_expiration_date()
    expiration_with_custom_message()
    print("Example completed!")

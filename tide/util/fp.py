"""Functional programming utilities."""


def ceil_div(numerator, denominator):
    """
    Integer ceiling of ``numerator / denominator`` without going through
    floating point.
    """
    return -(-numerator // denominator)

"""BN254 scalar field GF(r).

Uses galois library for all field arithmetic. FF is the field type.

The circuit lives over the scalar field of the BN254 curve, the same field the
halo2 KZG backends use. Elements are wider than 64 bits, so galois stores them
as Python ints in object arrays. The multiplicative generator is supplied
explicitly; otherwise galois would factor r - 1 on import.
"""

from typing import Iterable, Union

import galois

# --- Field Construction ---

BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Multiplicative generator of GF(r)
BN254_GENERATOR = 5

FF = galois.GF(BN254_PRIME, primitive_element=BN254_GENERATOR, verify=False)
"""Base field GF(r) - BN254 scalar field."""

# Bits of the largest value that always packs without wrapping
MAX_PACKED_BITS = BN254_PRIME.bit_length() - 1


# --- Conversion ---


def reduce(value: int) -> int:
    """Canonical representative of value in [0, r)."""
    return value % BN254_PRIME


def to_field(values: Union[int, Iterable[int]]) -> FF:
    """Build FF scalar or array from (possibly negative) integers."""
    if isinstance(values, int):
        return FF(reduce(values))
    return FF([reduce(int(v)) for v in values])


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for any galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Algorithm:
    1. Forward pass: Compute prefix products cumprods[i] = a[0] * a[1] * ... * a[i]
    2. Single inversion: inv_total = cumprods[N-1]^(-1)
    3. Backward pass: Extract individual inverses using cumprods

    Args:
        values: Galois FieldArray to invert (must all be non-zero)

    Returns:
        Galois FieldArray where result[i] = values[i]^(-1)

    Raises:
        ZeroDivisionError: If any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    # Forward pass: compute prefix products
    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    # Single inversion of the total product
    inv_total = cumprods[n - 1] ** -1

    # Backward pass: extract individual inverses
    results = field_type.Zeros(n)
    z = inv_total
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results

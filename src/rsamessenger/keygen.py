"""Core Key Generation Utility, mainly focusing on the generation of random probable primes.

This module is responsible for generating the RSA key pairs used by the messenger. Primes are probable primes found
by a Miller-Rabin test over randomly sampled candidates, searched concurrently for both primes and the public
exponent.

Typical usage example:

    is_probably_prime(9973)
    p = generate_probable_prime(64)
    (e, n), (d, n) = generate_key_pair(1024)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from concurrent import futures
import logging
import math
import secrets
from typing import Callable, Literal, overload

from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import NonInvertibleExponent

logger = logging.getLogger(__name__)

BATCH_SIZE: int = 500
E_BYTE_LENGTH: int = 16
MIN_KEY_SIZE: int = 32
MAX_KEY_SIZE: int = 2**16
_TRIAL_DIVISION_CAP: int = 1000
_SPLIT_RANGE: tuple[float, float] = (0.2, 0.3)


def byte_length(value: int) -> int:
    """Number of bytes needed for the unsigned big-endian representation of `value` (at least 1)."""
    return max(1, (value.bit_length() + 7) // 8)


def random_in_range(minimum: int, maximum: int) -> int:
    """Draw a random integer from `[minimum, maximum]`.

    Random bytes sized to `maximum` are reduced modulo the width of the range. For ranges that are not a power of two
    this carries a small modulo bias towards the lower end.

    Args:
        minimum: Lower bound, inclusive.
        maximum: Upper bound, inclusive.

    Returns:
        An integer in `[minimum, maximum]`.

    Raises:
        ValueError: If `maximum` is smaller than `minimum`.
    """
    if maximum < minimum:
        raise ValueError("maximum must be >= minimum")
    raw = int.from_bytes(secrets.token_bytes(byte_length(maximum)), byteorder="big", signed=False)
    return raw % (maximum - minimum + 1) + minimum


def _trial_division(value: int) -> bool:
    """Fast pre-check before Miller-Rabin, dividing by the odd numbers below `min(value, 1000)`.

    Args:
        value: Odd integer greater than 3.

    Returns:
        False if `value` cannot be prime, True otherwise.
    """
    upper = min(value, _TRIAL_DIVISION_CAP)
    for i in range(3, upper, 2):
        if value % i == 0:
            return False
    return True


def _miller_rabin(value: int, rounds: int) -> bool:
    """Perform the Miller-Rabin primality test.

    Args:
        value: Odd integer greater than 3 to be tested.
        rounds: Number of random witnesses to try.

    Returns:
        True if `value` is probably prime, False if it is certainly composite.
    """
    tw = value - 1
    r = (tw & -tw).bit_length() - 1
    d = tw >> r
    for _ in range(rounds):
        a = random_in_range(2, value - 2)
        x = pow(a, d, value)
        if x == 1 or x == tw:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, value)
            if x == 1:
                return False
            if x == tw:
                break
        if x != tw:
            return False
    return True


def is_probably_prime(value: int, rounds: int = 10) -> bool:
    """Composite primality test: trial division by small odd numbers, then Miller-Rabin.

    A True result is probabilistic, the chance of a composite passing is bounded by `4**-rounds`.

    Args:
        value: The candidate to test.
        rounds: Number of Miller-Rabin rounds. Defaults to 10.

    Returns:
        True if `value` is probably prime, False otherwise.
    """
    if value in (2, 3):
        return True
    if value <= 1 or value % 2 == 0:
        return False
    if not _trial_division(value):
        return False
    return _miller_rabin(value, rounds)


def generate_probable_prime(size: int) -> int:
    """Generate a probable prime from `size` random bytes.

    Candidates are sampled in batches of `BATCH_SIZE` and forced odd. There is no retry bound: the search keeps
    drawing batches until a candidate passes, which for degenerate sizes may take arbitrarily long.

    Args:
        size: Length of the random candidates in bytes. Must be >= 1.

    Returns:
        A probable prime below `256**size`.

    Raises:
        ValueError: If `size` is < 1.
    """
    if size < 1:
        raise ValueError("size must be >= 1")
    batches = 0
    while True:
        for _ in range(BATCH_SIZE):
            candidate = int.from_bytes(secrets.token_bytes(size), byteorder="big", signed=False)
            if candidate % 2 == 0 and candidate != 2:
                candidate += 1
            if is_probably_prime(candidate):
                logger.debug("Found %d-byte probable prime after %d exhausted batches", size, batches)
                return candidate
        batches += 1
        logger.debug("Batch %d of %d-byte candidates exhausted without a prime", batches, size)


def eea(a: int, b: int) -> tuple[int, int, int]:
    """Implements the Extended Euclidean Algorithm.

    Such that a*s0 + b*t0 = r0 = gcd(a, b).

    Args:
        a: The first natural number.
        b: The second natural number.

    Returns:
        Greatest common divisor of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = a, b
    s0, s1, t0, t1 = 1, 0, 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return r0, s0, t0


def mod_inverse(a: int, m: int) -> int:
    """Modular inverse of `a` modulo `m`, via the Extended Euclidean Algorithm.

    Args:
        a: The number to invert.
        m: The modulus. Must be > 0.

    Returns:
        The `x` in `[0, m)` such that `a*x % m == 1 % m`.

    Raises:
        ValueError: If `m` is not positive.
        NonInvertibleExponent: If `a` and `m` are not coprime.
    """
    if m <= 0:
        raise ValueError("Modulus must be > 0")
    g, s, _ = eea(a % m, m)
    if g != 1:
        raise NonInvertibleExponent(f"{a} is not invertible modulo {m}")
    return s % m


def validate_key_size(size: int) -> None:
    """Raise `InvalidKeySize` unless `size` is a multiple of 8 bits in `[32, 2**16]`."""
    if not isinstance(size, int) or isinstance(size, bool):
        raise InvalidKeySize("Key size must be an integer.")
    if size % 8 != 0 or not MIN_KEY_SIZE <= size <= MAX_KEY_SIZE:
        raise InvalidKeySize(f"Key size must be a multiple of 8 in the range [{MIN_KEY_SIZE}, {MAX_KEY_SIZE}].")


def split_key_length(total: int) -> tuple[int, int]:
    """Split `total` key bytes unevenly between the two primes.

    One prime receives roughly 50% plus or minus 20-30% of the bytes and the other the remainder, so the two primes
    are never generated at the same length.

    Args:
        total: Key length in bytes. Must be >= 2.

    Returns:
        Byte lengths of (p, q), both >= 1, summing to `total`.
    """
    sign = 1 if secrets.randbits(1) else -1
    low, high = _SPLIT_RANGE
    fraction = low + (high - low) * secrets.randbelow(1001) / 1000
    p_len = round(total * (0.5 + sign * fraction))
    p_len = min(max(p_len, 1), total - 1)
    return p_len, total - p_len


def _derive_private_exponent(p: int, q: int, e: int) -> int:
    """Derive `d` for the triple, raising `NonInvertibleExponent` if it cannot form a key."""
    t = (p - 1) * (q - 1)
    if p == q or t <= 1 or math.gcd(e, t) != 1:
        raise NonInvertibleExponent("Public exponent is not coprime with the totient.")
    return mod_inverse(e, t)


@overload
def generate_key_pair(size: int,
                      expose_primes: Literal[False] = False,
                      executor: Callable[..., futures.Executor] = futures.ThreadPoolExecutor
                      ) -> tuple[tuple[int, int], tuple[int, int]]:
    ...


@overload
def generate_key_pair(size: int,
                      expose_primes: Literal[True] = False,
                      executor: Callable[..., futures.Executor] = futures.ThreadPoolExecutor
                      ) -> tuple[tuple[int, int], tuple[int, int, int, int]]:
    ...


def generate_key_pair(
    size: int,
    expose_primes: bool = False,
    executor: Callable[..., futures.Executor] = futures.ThreadPoolExecutor
) -> tuple[tuple[int, int], tuple[int, int]] | tuple[tuple[int, int], tuple[int, int, int, int]]:
    """Generates an RSA key pair.

    Searches `p`, `q` and the public exponent `e` concurrently, one task each, and joins all three before deriving
    the private exponent. A triple whose exponent is not coprime with `(p-1)(q-1)` is discarded and the whole search
    repeated. There is no timeout.

    Args:
        size: The key size in bits. Must be a multiple of 8 in `[32, 2**16]`.
        expose_primes: Whether to export the prime numbers as well or not. Defaults to False.
        executor: Factory for the executor running the searches. Defaults to a thread pool.

    Returns:
        A tuple of (public, private) sub-tuples (exponent, modulus) or if exposed for the private
        (exponent, modulus, p, q)

    Raises:
        InvalidKeySize: If `size` is out of range or not a multiple of 8.
    """
    validate_key_size(size)
    p_len, q_len = split_key_length(size // 8)
    attempt = 0
    while True:
        attempt += 1
        with executor(max_workers=3) as pool:
            searches = [pool.submit(generate_probable_prime, length) for length in (p_len, q_len, E_BYTE_LENGTH)]
            p, q, e = (search.result() for search in searches)
        try:
            d = _derive_private_exponent(p, q, e)
        except NonInvertibleExponent:
            logger.debug("Attempt %d produced an unusable prime triple, retrying", attempt)
            continue
        break
    n = p * q
    logger.info("Generated %d-bit key pair in %d attempt(s)", size, attempt)
    if not expose_primes:
        del p, q
        return (e, n), (d, n)
    return (e, n), (d, n, p, q)

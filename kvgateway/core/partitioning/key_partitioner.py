"""
Key Partitioner

The backend is range partitioned over the integers 0 - 25. A key is placed
by the position of its first letter in the alphabet, so "Alice" and "apple"
land on partition key 0 and "zebra" on 25.
"""

from ...middleware.exceptions import InvalidKeyError

PARTITION_KEY_MIN = 0
PARTITION_KEY_MAX = 25
PARTITION_COUNT = PARTITION_KEY_MAX - PARTITION_KEY_MIN + 1


def compute_partition_key(key: str) -> int:
    """
    Map a key to its integer partition key.

    Only ASCII letters are folded; str.upper() is avoided because it maps
    some non-ASCII characters onto A-Z.

    Raises:
        InvalidKeyError: key is empty or does not start with a letter A-Z
    """
    if not key:
        raise InvalidKeyError("No key provided", key=key)

    first = key[0]
    if "a" <= first <= "z":
        first = chr(ord(first) - (ord("a") - ord("A")))

    partition_key = ord(first) - ord("A")

    if partition_key < PARTITION_KEY_MIN or partition_key > PARTITION_KEY_MAX:
        raise InvalidKeyError("The key must begin with a letter between A and Z", key=key)

    return partition_key

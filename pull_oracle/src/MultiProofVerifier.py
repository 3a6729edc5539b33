"""MultiProofVerifier: Merkle multi-proof verification.

A multi-proof authenticates several leaves against one root with a single
shared set of interior hashes. Reconstruction runs ``len(flags)`` combination
steps over two queues:

    - pending nodes: the leaves first, then every hash produced so far
    - proof elements: consumed in order

At step ``i`` the first operand is the next pending node. The second one is
another pending node when ``flags[i]`` is true, or the next proof element when
it is false. Operands are combined with :func:`hash_pair`, which sorts them
before hashing, so a proof does not encode left/right positions.

.. code-block:: python

    >>> verifier = MultiProofVerifier()
    >>> a, b = b"\\x01" * 32, b"\\x02" * 32
    >>> verifier.verify([a, b], [], [True], hash_pair(a, b))
    True
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from web3 import Web3

logger = logging.getLogger(__name__)


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Combine two nodes with an order-independent keccak256.

    :param a: 32-byte node.
    :param b: 32-byte node.
    :returns: keccak256 of the two nodes concatenated in ascending order.
    """
    a, b = bytes(a), bytes(b)
    if b < a:
        a, b = b, a
    return bytes(Web3.keccak(a + b))


def process_multiproof(
    leaf_hashes: Sequence[bytes],
    proof: Sequence[bytes],
    flags: Sequence[bool],
) -> bytes | None:
    """Reconstruct the root implied by a multi-proof.

    :param leaf_hashes: Leaf hashes in proof order.
    :param proof: Interior proof hashes in consumption order.
    :param flags: One flag per combination step.
    :returns: The reconstructed root, or None if the proof is malformed.
    """
    leaves_len = len(leaf_hashes)
    proof_len = len(proof)
    total_steps = len(flags)

    # Every step consumes two inputs and produces one.
    if leaves_len + proof_len != total_steps + 1:
        return None

    hashes: list[bytes] = []
    leaf_pos = 0
    hash_pos = 0
    proof_pos = 0

    for i in range(total_steps):
        if leaf_pos < leaves_len:
            a = leaf_hashes[leaf_pos]
            leaf_pos += 1
        elif hash_pos < len(hashes):
            a = hashes[hash_pos]
            hash_pos += 1
        else:
            return None

        if flags[i]:
            if leaf_pos < leaves_len:
                b = leaf_hashes[leaf_pos]
                leaf_pos += 1
            elif hash_pos < len(hashes):
                b = hashes[hash_pos]
                hash_pos += 1
            else:
                return None
        else:
            if proof_pos >= proof_len:
                return None
            b = proof[proof_pos]
            proof_pos += 1

        hashes.append(hash_pair(a, b))

    if total_steps > 0:
        if proof_pos != proof_len:
            return None
        return hashes[-1]
    if leaves_len > 0:
        return bytes(leaf_hashes[0])
    return bytes(proof[0])


class MultiProofVerifier:
    """Verifies multi-proofs against an expected merkle root."""

    def verify(
        self,
        leaf_hashes: Sequence[bytes],
        proof: Sequence[bytes],
        flags: Sequence[bool],
        expected_root: bytes,
    ) -> bool:
        """Check that the leaves belong to the tree with ``expected_root``.

        :param leaf_hashes: Leaf hashes in proof order.
        :param proof: Interior proof hashes.
        :param flags: Reconstruction flags.
        :param expected_root: Root the proof must reconstruct.
        :returns: True only if the proof is well formed and matches the root.
        """
        root = process_multiproof(leaf_hashes, proof, flags)
        if root is None:
            logger.debug(
                f"Malformed multi-proof: leaves={len(leaf_hashes)}, "
                f"proof={len(proof)}, flags={len(flags)}"
            )
            return False
        return root == bytes(expected_root)

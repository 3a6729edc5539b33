"""MerkleTree: Producer-side tree construction and multi-proof generation.

Nodes are stored as a complete binary tree in a flat list: the root sits at
index 0, the children of node ``i`` at ``2i + 1`` and ``2i + 2``, and leaf
``k`` at ``len(tree) - 1 - k``. Multi-proofs are generated by walking the
requested leaves in descending tree index, which is exactly the queue order
:func:`~.MultiProofVerifier.process_multiproof` consumes.
"""

from __future__ import annotations

from collections.abc import Sequence

from .MultiProofVerifier import hash_pair


class MerkleTree:
    """Merkle tree over a list of leaf hashes.

    :ivar leaf_count: Number of leaves.
    """

    def __init__(self, leaf_hashes: Sequence[bytes]) -> None:
        """Build the tree.

        :param leaf_hashes: Leaf hashes in leaf order.
        :raises ValueError: If no leaves are given.
        """
        if not leaf_hashes:
            raise ValueError("MerkleTree needs at least one leaf")

        self.leaf_count = len(leaf_hashes)
        size = 2 * self.leaf_count - 1
        self._tree: list[bytes] = [b""] * size

        for k, leaf in enumerate(leaf_hashes):
            self._tree[size - 1 - k] = bytes(leaf)
        for i in range(size - 1 - self.leaf_count, -1, -1):
            self._tree[i] = hash_pair(self._tree[2 * i + 1], self._tree[2 * i + 2])

    @property
    def root(self) -> bytes:
        """Root hash of the tree."""
        return self._tree[0]

    def _tree_index(self, leaf_index: int) -> int:
        if not 0 <= leaf_index < self.leaf_count:
            raise IndexError(f"Leaf index {leaf_index} out of range")
        return len(self._tree) - 1 - leaf_index

    def multiproof(
        self, leaf_indices: Sequence[int]
    ) -> tuple[list[int], list[bytes], list[bool]]:
        """Generate a multi-proof for a set of leaves.

        :param leaf_indices: Indices of the leaves to prove.
        :returns: Tuple of (leaf order, proof, flags). Leaves must be handed to
            the verifier in the returned order, which is ascending leaf index.
        :raises ValueError: If an index is repeated.
        :raises IndexError: If an index is out of range.
        """
        if len(set(leaf_indices)) != len(leaf_indices):
            raise ValueError("Leaf indices must be unique")

        tree_indices = sorted((self._tree_index(k) for k in leaf_indices), reverse=True)
        queue = list(tree_indices)
        proof: list[bytes] = []
        flags: list[bool] = []

        while queue and queue[0] > 0:
            j = queue.pop(0)
            sibling = j - 1 if j % 2 == 0 else j + 1
            parent = (j - 1) // 2

            if queue and queue[0] == sibling:
                flags.append(True)
                queue.pop(0)
            else:
                flags.append(False)
                proof.append(self._tree[sibling])
            queue.append(parent)

        if not tree_indices:
            proof.append(self.root)

        order = [len(self._tree) - 1 - j for j in tree_indices]
        return order, proof, flags

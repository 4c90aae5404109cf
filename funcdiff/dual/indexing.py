r"""@package funcdiff.dual.indexing

Index maps of the packed derivative arrays used by dual numbers.

Hessians are symmetric, so only the upper triangle is stored, row by row.
For `n` variables, the entry `(i, j)` with `i <= j` is stored at index
hessian_index(n, i, j) of an array of hessian_size(n) elements. The order
agrees with that of `numpy.triu_indices(n)`.

Third derivatives are fully symmetric. Only entries `(i, j, k)` with
`i <= j <= k` are stored and, to save memory, only those with the first
index below a number `n0 <= n`. The entries are ordered lexicographically,
i.e. all entries with `i == 0` first, then those with `i == 1`, etc.

The functions returning index arrays cache their results, which are marked
read-only for this reason.
"""

from functools import lru_cache

import numpy as np


__all__ = [
    "hessian_size",
    "hessian_index",
    "hessian_pairs",
    "hessian_index_matrix",
    "third_size",
    "third_reduced_size",
    "third_reduced_index",
    "third_triples",
]


def _readonly(array):
    array.flags.writeable = False
    return array


def hessian_size(n):
    r"""Number of stored entries of the Hessian of `n` variables."""
    if n < 0:
        raise ValueError("Number of variables must not be negative.")
    return n * (n + 1) // 2


def hessian_index(n, i, j):
    r"""Position of the Hessian entry `(i, j)` in the packed array.

    The arguments are swapped if `i > j`.

    @b Raises
        `IndexError` if an index is out of range.
    """
    if i > j:
        i, j = j, i
    if i < 0 or j >= n:
        raise IndexError("Hessian index (%s, %s) out of range for n = %s."
                         % (i, j, n))
    return i * (1 - i) // 2 + i * n + j - i


@lru_cache(maxsize=64)
def hessian_pairs(n):
    r"""Row and column indices of all packed Hessian entries in order."""
    iu, ju = np.triu_indices(n)
    return _readonly(iu), _readonly(ju)


@lru_cache(maxsize=64)
def hessian_index_matrix(n):
    r"""Symmetric `n x n` array of packed indices of all Hessian entries.

    Indexing a packed array with the result returns the full matrix.
    """
    i, j = np.indices((n, n))
    lo, hi = np.minimum(i, j), np.maximum(i, j)
    return _readonly(lo * (1 - lo) // 2 + lo * n + hi - lo)


def third_size(n):
    r"""Number of entries `i <= j <= k < n` of the full third derivative."""
    if n < 0:
        raise ValueError("Number of variables must not be negative.")
    return n * (n + 1) * (n + 2) // 6


def third_reduced_size(n, n0):
    r"""Number of stored third derivative entries with `i < n0`."""
    if n0 < 0 or n0 > n:
        raise ValueError("Invalid n0 = %s for n = %s." % (n0, n))
    return third_size(n) - third_size(n - n0)


def third_reduced_index(n, n0, i, j, k):
    r"""Position of the third derivative entry `(i, j, k)` in the packed array.

    The indices are sorted first, so any permutation refers to the same
    entry. Entries preceding those of a given `i` are all entries of the
    smaller first indices, of which there are ``third_size(n) -
    third_size(n - i)``. Within the block of `i`, the entries are laid out
    like the Hessian of the last `n - i` variables.

    @b Raises
        `IndexError` if the smallest index is not below `n0` or any index is
        out of range.
    """
    i, j, k = sorted((i, j, k))
    if i < 0 or k >= n or i >= n0:
        raise IndexError("Third derivative index (%s, %s, %s) out of range "
                         "for n = %s, n0 = %s." % (i, j, k, n, n0))
    return third_size(n) - third_size(n - i) + hessian_index(n - i, j - i,
                                                             k - i)


@lru_cache(maxsize=64)
def third_triples(n, n0):
    r"""Index arrays `I, J, K` of all stored third derivative entries.

    The entries are in storage order, i.e. ``third_reduced_index(n, n0,
    I[l], J[l], K[l]) == l``.
    """
    blocks_i, blocks_j, blocks_k = [], [], []
    for i in range(n0):
        ju, ku = np.triu_indices(n - i)
        blocks_i.append(np.full(len(ju), i, dtype=int))
        blocks_j.append(ju + i)
        blocks_k.append(ku + i)
    if not blocks_i:
        empty = np.zeros(0, dtype=int)
        return _readonly(empty), _readonly(empty.copy()), _readonly(empty.copy())
    return (_readonly(np.concatenate(blocks_i)),
            _readonly(np.concatenate(blocks_j)),
            _readonly(np.concatenate(blocks_k)))

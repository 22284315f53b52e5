import numpy as np


def kaplan_yorke_dimension(spectrum: np.ndarray, sorted: bool = True) -> float:
    """
    Kaplan–Yorke (Lyapunov) dimension of a spectrum.

    Parameters
    ----------
    spectrum : array_like, shape (m,)
        Lyapunov exponents.
    sorted : bool
        Whether ``spectrum`` is already in descending order. If not, a sorted
        copy is used; the input is never modified.

    Returns
    -------
    float
        ``j + sum(spectrum[:j]) / |spectrum[j]|`` where ``j`` is the largest
        count of leading exponents with a non-negative sum; the full length
        when no partial sum is negative and ``0`` when the first one is.

    Examples
    --------
    >>> kaplan_yorke_dimension([0.9, 0.0, -14.5])  # doctest: +ELLIPSIS
    2.062...
    """
    spectrum = np.asarray(spectrum, dtype=float).ravel()
    if not sorted:
        # NaN entries end up last
        spectrum = -np.sort(-spectrum)

    j = None
    partial = 0.0
    for i, value in enumerate(spectrum):
        partial += value
        if partial < 0:
            j = i
            break

    if j is None:
        return float(spectrum.size)
    if j == 0:
        return 0.0
    return j + float(np.sum(spectrum[:j])) / abs(spectrum[j])


__all__ = [
    "kaplan_yorke_dimension",
]

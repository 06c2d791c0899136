# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import inspect
import typing as tp
try:
    import pytest
except ImportError:
    pass  # makes most of this module usable without pytest
import numpy as np


def assert_sorted_descending(values: tp.Iterable[float], err_msg: str = "") -> None:
    """Asserts that a sequence of fitness values is sorted from best (highest) to worst.
    This function should only be used in tests.
    """
    array = np.asarray(list(values), dtype=float)
    wrong = np.nonzero(array[1:] > array[:-1])[0]
    if wrong.size:
        messages = ([err_msg] if err_msg else []) + [
            f"Values are not sorted in descending order (first issue at index {wrong[0]}):",
            f"  {array.tolist()}",
        ]
        raise AssertionError("\n".join(messages))


def assert_within_bounds(
    data: tp.Any, lower: tp.Any, upper: tp.Any, err_msg: str = ""
) -> None:
    """Asserts that all rows of data lie in the [lower, upper] box
    This function should only be used in tests.
    """
    array = np.atleast_2d(np.asarray(data, dtype=float))
    below = array < np.asarray(lower, dtype=float)
    above = array > np.asarray(upper, dtype=float)
    if below.any() or above.any():
        rows = sorted(set(np.nonzero(below | above)[0].tolist()))
        messages = ([err_msg] if err_msg else []) + [f"Rows {rows} are out of bounds [{lower}, {upper}]"]
        raise AssertionError("\n".join(messages))


class parametrized:
    """Simplified decorator API for specifying named parametrized test with pytests
    (like with old "genty" package)
    See example of use in test_testing

    Parameters
    ----------
    **kwargs:
        name of the argument is converted as id of the experiments, and the provided tuple
        contains a value for each of the arguments of the underlying function (in the definition order).
    """

    def __init__(self, **kwargs: tp.Tuple[tp.Any, ...]):
        self.ids = sorted(kwargs)
        self.params = tuple(kwargs[name] for name in self.ids)
        assert self.params
        self.num_params = len(self.params[0])
        assert all(isinstance(p, (tuple, list)) for p in self.params)
        assert all(self.num_params == len(p) for p in self.params[1:])

    def __call__(self, func: tp.Callable[..., None]) -> tp.Any:  # type is lost here :(
        names = list(inspect.signature(func).parameters.keys())
        assert len(names) == self.num_params, f"Parameter names: {names}"
        return pytest.mark.parametrize(
            ",".join(names), self.params if self.num_params > 1 else [p[0] for p in self.params], ids=self.ids
        )(func)

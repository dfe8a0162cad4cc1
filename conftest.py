#  ___________________________________________________________________________
#
#  Pyomo: Python Optimization Modeling Objects
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________

import pytest

_implicit_markers = {'default'}
_extended_implicit_markers = _implicit_markers.union({'solver'})


def pytest_collection_modifyitems(items):
    """Mark every unmarked test as 'default'"""
    for item in items:
        if next(item.iter_markers(), None) is None:
            for marker in _implicit_markers:
                item.add_marker(getattr(pytest.mark, marker))


def pytest_runtest_setup(item):
    """Select tests by engine

    With ``--solver=NAME`` only the tests marked ``solver(NAME)`` run.
    With ``-m`` pytest's own marker selection applies. Otherwise default,
    unmarked and engine tests run; engine tests carrying any further
    marker are skipped.
    """
    enginenames = [mark.args[0] for mark in item.iter_markers(name="solver")]
    engineoption = item.config.getoption("--solver")
    markeroption = item.config.getoption("-m")
    item_markers = set(mark.name for mark in item.iter_markers())
    if engineoption:
        if engineoption not in enginenames:
            pytest.skip("SKIPPED: Test not marked {!r}".format(engineoption))
    elif markeroption:
        return
    elif item_markers:
        if not _implicit_markers.issubset(item_markers) and not item_markers.issubset(
            _extended_implicit_markers
        ):
            pytest.skip('SKIPPED: Only running default, solver, and unmarked tests.')


def pytest_addoption(parser):
    parser.addoption(
        "--solver",
        action="store",
        metavar="ENGINE",
        help="Only run the tests that drive the named NLP engine.",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "solver(name): mark test as driving the named NLP engine"
    )

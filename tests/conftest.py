import shutil

import pytest


def pytest_collection_modifyitems(config, items):
    if shutil.which('sh') is None:
        skip = pytest.mark.skip(reason='needs a POSIX shell and utilities')
        for item in items:
            if 'posix' in item.keywords:
                item.add_marker(skip)


def pytest_configure(config):
    config.addinivalue_line('markers', 'posix: needs sh, printf, cat and friends')

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    # setup_logging() replaces root handlers; put pytest's back afterwards
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)

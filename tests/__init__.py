"""Test suite package marker."""

import pytest

# Helper modules imported by tests need assertion rewriting before import.
pytest.register_assert_rewrite("tests.assertions")
pytest.register_assert_rewrite("tests.store_test_utils")

"""
Tests for the report's cached data loading.
"""

from unittest.mock import patch

import pytest

pytest.importorskip('streamlit')

import app


class TestLoadData:
    """Cache key of the FRED fetch"""

    def setup_method(self):
        app.load_data.clear()

    def teardown_method(self):
        app.load_data.clear()

    def test_key_covers_alignment_and_sample_size(self, context):
        key = app.data_key(context)
        assert app.data_key(context.with_overrides(alignment='exact')) != key
        assert app.data_key(context.with_overrides(min_observations=120)) != key
        assert app.data_key(context.with_overrides()) == key

    def test_alignment_change_refetches(self, context, cointegrated_data):
        with patch('app.fetch_data', return_value=cointegrated_data) as fetch:
            app.load_data(context, *app.data_key(context))
            app.load_data(context, *app.data_key(context))
            assert fetch.call_count == 1

            exact = context.with_overrides(alignment='exact')
            app.load_data(exact, *app.data_key(exact))
            assert fetch.call_count == 2

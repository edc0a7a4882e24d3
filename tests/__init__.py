"""Test suite for ProductScout.

Tests mirror the productscout/ package layout. Field parsers and the
acceptance filter are tested directly on text and records; everything
that touches Playwright runs against mocks.
"""

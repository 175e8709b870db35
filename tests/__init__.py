"""Tests for linebasic."""

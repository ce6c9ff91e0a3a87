"""Tests for the chunked upload pipeline: sessions, reassembly and the service facade."""

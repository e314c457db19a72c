"""Integration tests for Pronunciation Coach.

These tests cover components that cooperate across threads, such as the
event bus that session workers publish on.
"""

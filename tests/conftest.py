"""Shared conversation fixtures.

Two conversations, ordered within each:

    conversation 1: Alice, Bob, Alice, Dave, Bob, Bob
    conversation 2: Alice, Bob, Alice, Bob
"""

import pytest


@pytest.fixture
def conversations():
    return {
        "conversation": [1, 1, 1, 1, 1, 1, 2, 2, 2, 2],
        "author": ["Alice", "Bob", "Alice", "Dave", "Bob", "Bob", "Alice", "Bob", "Alice", "Bob"],
        "order": [1, 2, 3, 4, 5, 6, 1, 2, 3, 4],
    }


@pytest.fixture
def alternating():
    """One thread: Alice, Bob, Alice, Bob, Bob, Alice."""
    return {
        "conversation": ["t1"] * 6,
        "author": ["Alice", "Bob", "Alice", "Bob", "Bob", "Alice"],
        "order": [1, 2, 3, 4, 5, 6],
    }

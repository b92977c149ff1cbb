import uuid

import pytest

from midpoint.services.errors import AllocationExhausted, Conflict
from midpoint.services.identifiers import IdentifierAllocator, generate_meeting_param


def test_generated_params_are_uuid4_strings():
    param = generate_meeting_param()
    assert uuid.UUID(param).version == 4


def test_allocate_returns_first_unused_candidate():
    taken = {"a", "b"}
    candidates = iter(["a", "b", "c", "d"])
    allocator = IdentifierAllocator(taken.__contains__, generate=lambda: next(candidates))

    assert allocator.allocate() == "c"


def test_allocate_gives_up_after_max_attempts():
    calls = []

    def generate():
        calls.append(1)
        return "same"

    allocator = IdentifierAllocator(lambda param: True, generate=generate, max_attempts=3)

    with pytest.raises(AllocationExhausted) as excinfo:
        allocator.allocate()

    assert len(calls) == 3
    assert isinstance(excinfo.value, Conflict)
    assert excinfo.value.kind == "Conflict"


def test_default_max_attempts_is_ten():
    calls = []

    def generate():
        calls.append(1)
        return "taken"

    allocator = IdentifierAllocator(lambda param: True, generate=generate)

    with pytest.raises(AllocationExhausted):
        allocator.allocate()
    assert len(calls) == 10

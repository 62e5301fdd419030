"""
Unit tests for the wpstack executor.

Tests the executor's resource management and plan/apply workflow.
"""

import pytest

from wpstack.core import Action, Resource
from wpstack.core.executor import Executor, apply_resources


class MockResource(Resource):
    """Mock resource for testing."""

    def __init__(self, name: str, exists: bool = False, fail: bool = False):
        super().__init__(name)
        self.exists = exists
        self.fail = fail
        self.applied = False

    def resource_type(self) -> str:
        return "mock"

    def check(self, platform):
        present = self.exists or self.applied
        return {"exists": present, "value": "x" if present else None}

    def desired_state(self):
        return {"exists": True, "value": "x"}

    def apply(self, plan, platform):
        if self.fail:
            raise RuntimeError(f"{self.name} failed")
        self.applied = True


class TestExecutorResourceManagement:
    """Unit tests for executor resource management."""

    def test_add_single_resource(self, transport, platform):
        """Test adding a single resource to executor."""
        executor = Executor(platform=platform, transport=transport)
        resource = executor.add(MockResource("test1"))

        assert len(executor.resources) == 1
        assert executor.get(resource.id) is resource
        assert resource._transport is transport

    def test_duplicate_resource_rejected(self, transport, platform):
        """Test that the same resource id cannot be added twice."""
        executor = Executor(platform=platform, transport=transport)
        executor.add(MockResource("config"))

        with pytest.raises(ValueError, match="Duplicate resource: mock:config"):
            executor.add(MockResource("config"))

    def test_unattached_resource_has_null_transport(self):
        """Test that a resource not added to an executor explains itself."""
        resource = MockResource("loose")

        with pytest.raises(RuntimeError, match="Transport not initialized"):
            resource._transport.run_command(["true"])

    def test_clear(self, transport, platform):
        """Test clearing all resources."""
        executor = Executor(platform=platform, transport=transport)
        executor.add(MockResource("a"))
        executor.clear()

        assert executor.resources == []
        assert executor.get("mock:a") is None


class TestExecutorWorkflow:
    """Unit tests for plan/apply."""

    def test_plan_counts_changes(self, transport, platform):
        """Test that only resources needing work count as changes."""
        executor = Executor(platform=platform, transport=transport)
        executor.add(MockResource("missing"))
        executor.add(MockResource("present", exists=True))

        plan_result = executor.plan()

        assert plan_result.change_count == 1
        assert plan_result.plans["mock:missing"].action == Action.CREATE
        assert plan_result.plans["mock:present"].action == Action.NONE

    def test_apply_stops_at_first_failure(self, transport, platform):
        """Test that a failing resource stops every later one."""
        executor = Executor(platform=platform, transport=transport)
        first = executor.add(MockResource("first"))
        broken = executor.add(MockResource("broken", fail=True))
        last = executor.add(MockResource("last"))

        result = executor.apply(executor.plan())

        assert not result.success
        assert result.changed_resources == [first.id]
        assert first.applied
        assert not broken.applied
        assert not last.applied

    def test_run_raises_first_error(self, transport, platform):
        """Test that run() surfaces the apply error."""
        executor = Executor(platform=platform, transport=transport)
        executor.add(MockResource("broken", fail=True))

        with pytest.raises(RuntimeError, match="broken failed"):
            executor.run()

    def test_apply_resources_is_idempotent(self, transport, platform):
        """Test that a second run over converged resources changes nothing."""
        resource = MockResource("once")
        first = apply_resources(transport, platform, resource)

        again = MockResource("once", exists=True)
        second = apply_resources(transport, platform, again)

        assert first.changed_resources == ["mock:once"]
        assert second.changed_resources == []

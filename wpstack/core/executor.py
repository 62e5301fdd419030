"""
Executor - plans and applies a batch of resources in order.

A stage hands its resources to an executor, which checks them all,
then applies the ones that need work. The first failure ends the batch:
nothing after it is touched and run() re-raises the error.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from wpstack.core.resource import Plan, Platform, Resource
from wpstack.logging import get_stack_logger
from wpstack.transport import LocalTransport, Transport

logger = get_stack_logger(__name__)


@dataclass
class PlanResult:
    plans: Dict[str, Plan] = field(default_factory=dict)
    errors: List[Exception] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        return sum(1 for plan in self.plans.values() if plan.has_changes())

    @property
    def has_changes(self) -> bool:
        return self.change_count > 0


@dataclass
class ApplyResult:
    changed_resources: List[str] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors


class Executor:
    """
    Runs the check/plan/apply cycle for the resources added to it.

    Example:
        executor = Executor(platform, transport)
        executor.add(Package("nginx"))
        executor.add(Service("nginx"))
        executor.run()
    """

    def __init__(
        self,
        platform: Optional[Platform] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Args:
            platform: Host platform (detected through the transport if None)
            transport: Where commands run (LocalTransport if None)
        """
        self.transport = transport or LocalTransport()
        self.platform = platform or Platform.detect(self.transport)
        self.resources: List[Resource] = []
        self._by_id: Dict[str, Resource] = {}

    def add(self, resource: Resource) -> Resource:
        """
        Attach a resource to this executor's transport.

        Raises:
            ValueError: a resource with the same id was already added
        """
        if resource.id in self._by_id:
            raise ValueError(f"Duplicate resource: {resource.id}")

        resource._transport = self.transport
        self.resources.append(resource)
        self._by_id[resource.id] = resource
        return resource

    def get(self, resource_id: str) -> Optional[Resource]:
        return self._by_id.get(resource_id)

    def plan(self) -> PlanResult:
        """Check every resource; errors are collected, not raised."""
        result = PlanResult()
        for resource in self.resources:
            try:
                result.plans[resource.id] = resource.plan(self.platform)
            except Exception as e:
                result.errors.append(e)
        return result

    def apply(self, plan_result: PlanResult) -> ApplyResult:
        """Apply planned changes in insertion order, stopping at the first failure."""
        result = ApplyResult()
        started = time.time()

        for resource in self.resources:
            plan = plan_result.plans.get(resource.id)
            if plan is None or not plan.has_changes():
                logger.debug(f"{resource.id}: {plan.reason if plan else 'not planned'}")
                continue

            logger.action(plan.action.value, resource.id, plan.reason)
            try:
                resource.apply(plan, self.platform)
            except Exception as e:
                result.errors.append(e)
                break
            result.changed_resources.append(resource.id)
            resource._actual_state = resource.check(self.platform)

        result.duration = time.time() - started
        return result

    def run(self) -> ApplyResult:
        """
        Plan and apply, raising the first error from either phase.

        Returns:
            ApplyResult listing the resources that were changed
        """
        plan_result = self.plan()
        if plan_result.errors:
            raise plan_result.errors[0]

        result = self.apply(plan_result)
        if result.errors:
            raise result.errors[0]
        logger.debug(f"applied {len(result.changed_resources)} change(s) in {result.duration:.1f}s")
        return result

    def clear(self) -> None:
        self.resources.clear()
        self._by_id.clear()


def apply_resources(transport: Transport, platform: Platform, *resources: Resource) -> ApplyResult:
    """
    Run resources through a fresh executor.

    Use separate calls when a later resource can only be checked once an
    earlier one exists (e.g. "ufw status" needs the ufw package).
    """
    executor = Executor(platform=platform, transport=transport)
    for resource in resources:
        executor.add(resource)
    return executor.run()

"""Request cycles: one structured text call, then independent illustrations.

A cycle awaits its text request first. When the text arrives it becomes the
displayed result and every illustration slot is started as its own task, so
one slow or failing image never holds back the text or the other images.
When a newer cycle takes over the display, the older cycle's outstanding
illustrations are cancelled and anything they return is ignored.
"""

import asyncio
import itertools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .errors import StylistError
from .llm_services import StylistClient
from .models import FlowerStylingResult, RequestInput, SubscriptionPlan
from .prompts import (
    overview_illustration_prompt,
    technique_illustration_prompt,
    week_illustration_prompt,
)

logger = logging.getLogger(__name__)

CycleResult = Union[FlowerStylingResult, SubscriptionPlan]


class CycleState(str, Enum):
    IDLE = "idle"
    REQUESTING_TEXT = "requesting_text"
    IMAGES_PENDING = "images_pending"
    DONE = "done"
    FAILED = "failed"


class SlotState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class IllustrationSlot:
    def __init__(self, key: str, prompt: str):
        self.key = key
        self.prompt = prompt
        self.state = SlotState.PENDING
        self.image: Optional[bytes] = None
        self.task: Optional[asyncio.Task] = None

    def resolve(self, image: Optional[bytes]):
        self.image = image
        self.state = SlotState.READY if image else SlotState.UNAVAILABLE

    def __repr__(self):
        return f"IllustrationSlot(key={self.key!r}, state={self.state.value})"


class RequestCycle:
    def __init__(self, cycle_id: int, kind: str):
        self.cycle_id = cycle_id
        self.kind = kind
        self.state = CycleState.IDLE
        self.result: Optional[CycleResult] = None
        self.error: Optional[Exception] = None
        self.slots: Dict[str, IllustrationSlot] = {}
        self.cancelled = False

    @property
    def illustrations(self) -> List[IllustrationSlot]:
        return list(self.slots.values())

    def cancel(self):
        self.cancelled = True
        for slot in self.slots.values():
            if slot.task and not slot.task.done():
                slot.task.cancel()

    async def settle(self) -> List[IllustrationSlot]:
        """Wait until every illustration slot has finished or been cancelled."""
        tasks = [slot.task for slot in self.slots.values() if slot.task]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self.state == CycleState.IMAGES_PENDING and not self.cancelled:
            self.state = CycleState.DONE
        return self.illustrations


class StylistOrchestrator:
    """Sequences request cycles for one view (one user session)."""

    def __init__(self, client: StylistClient):
        self.client = client
        self.current: Optional[CycleResult] = None
        self.displayed: Optional[RequestCycle] = None
        self._ids = itertools.count(1)
        self._cycles: List[RequestCycle] = []

    async def run_styling(
        self, request_input: RequestInput, illustrate: bool = True, overview: bool = False
    ) -> RequestCycle:
        def plan_slots(result: FlowerStylingResult) -> Dict[str, str]:
            prompts = {}
            if overview:
                prompts["overview"] = overview_illustration_prompt(result)
            for index, technique in enumerate(result.wrapping_techniques):
                prompts[f"technique-{index + 1}"] = technique_illustration_prompt(result, technique)
            return prompts

        return await self._run(
            "styling",
            lambda: self.client.request_styling(request_input),
            plan_slots if illustrate else None,
        )

    async def run_subscription(
        self, vibe: str, preferred_flowers: Optional[str] = None, illustrate: bool = True
    ) -> RequestCycle:
        def plan_slots(plan: SubscriptionPlan) -> Dict[str, str]:
            return {
                f"week-{index + 1}": week_illustration_prompt(week)
                for index, week in enumerate(plan.weeks)
            }

        return await self._run(
            "subscription",
            lambda: self.client.request_subscription_plan(vibe, preferred_flowers),
            plan_slots if illustrate else None,
        )

    def close(self):
        """Cancel all outstanding illustrations; the view is being discarded."""
        for cycle in self._cycles:
            cycle.cancel()
        self._cycles = []

    async def _run(
        self,
        kind: str,
        request_text: Callable[[], Awaitable[CycleResult]],
        plan_slots: Optional[Callable[[Any], Dict[str, str]]],
    ) -> RequestCycle:
        cycle = RequestCycle(next(self._ids), kind)
        self._cycles.append(cycle)
        cycle.state = CycleState.REQUESTING_TEXT
        logger.info(f"Cycle {cycle.cycle_id} ({kind}): requesting text.")

        try:
            result = await request_text()
        except Exception as e:
            cycle.state = CycleState.FAILED
            cycle.error = e
            if cycle in self._cycles:
                self._cycles.remove(cycle)
            if isinstance(e, StylistError):
                logger.warning(f"Cycle {cycle.cycle_id} ({kind}) failed: {e}")
            else:
                logger.error(f"Cycle {cycle.cycle_id} ({kind}) failed unexpectedly: {e}", exc_info=True)
            raise

        cycle.result = result
        self._display(cycle)

        if plan_slots is None:
            cycle.state = CycleState.DONE
            return cycle

        for key, prompt in plan_slots(result).items():
            slot = IllustrationSlot(key, prompt)
            cycle.slots[key] = slot
            slot.task = asyncio.create_task(self._fill_slot(cycle, slot))

        cycle.state = CycleState.IMAGES_PENDING if cycle.slots else CycleState.DONE
        logger.info(f"Cycle {cycle.cycle_id} ({kind}): text ready, {len(cycle.slots)} illustration(s) pending.")
        return cycle

    def _display(self, cycle: RequestCycle):
        # Last completed text request wins the display slot
        previous = self.displayed
        if previous is not None and previous is not cycle:
            logger.info(f"Cycle {cycle.cycle_id} supersedes cycle {previous.cycle_id}.")
            previous.cancel()
            if previous in self._cycles:
                self._cycles.remove(previous)
        self.displayed = cycle
        self.current = cycle.result

    async def _fill_slot(self, cycle: RequestCycle, slot: IllustrationSlot):
        image = await self.client.request_illustration(slot.prompt)
        if cycle.cancelled:
            logger.debug(f"Ignoring stale illustration {slot.key} of cycle {cycle.cycle_id}.")
            return
        slot.resolve(image)

#!/usr/bin/env python3
"""Simple StepFlow example.

This example demonstrates the basic usage of StepFlow:
1. Implement an execution target
2. Load settings from YAML
3. Build a script with hooks, gating and recovery
4. Run it and inspect the per-iteration summaries

Run this example:
    python examples/simple_scenario.py
"""

import asyncio
import logging
from pathlib import Path

from stepflow import (
    BaseTarget,
    ConfigLoader,
    DataFeeder,
    Hook,
    HookSet,
    LoggingReporter,
    Runner,
    Script,
    Settings,
    Step,
    StepOptions,
)


# Define an execution target
class ShopTarget(BaseTarget):
    """Pretend browser that keeps its state in memory."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.page = ""
        self.cart: list[str] = []
        self.flaky = True

    async def reopen(self, incognito: bool) -> None:
        self.page = "about:blank"
        self.cart = []

    async def clear_cache(self) -> None:
        pass

    async def clear_cookies(self) -> None:
        pass

    async def emulate_device(self, device: str) -> None:
        pass

    async def set_user_agent(self, user_agent: str) -> None:
        pass

    async def set_cache_disabled(self, disabled: bool) -> None:
        pass

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None:
        pass

    async def set_blocked_domains(self, domains: list[str]) -> None:
        print(f"  [ShopTarget] Blocking: {domains}")

    async def goto(self, url: str) -> None:
        await self.perform("goto", setattr, self, "page", url)

    async def add_to_cart(self, item: str) -> None:
        def add() -> None:
            if self.flaky:
                self.flaky = False
                raise RuntimeError("Add button not clickable yet")
            self.cart.append(item)

        await self.perform("add_to_cart", add)


async def open_shop(target: ShopTarget, data: dict) -> None:
    await target.goto("https://shop.example.com")


async def add_item(target: ShopTarget, data: dict) -> None:
    await target.add_to_cart(data["item"])


async def check_cart(target: ShopTarget, data: dict) -> None:
    assert target.cart == [data["item"]], f"unexpected cart {target.cart}"


async def reload_page(target: ShopTarget, data: dict) -> None:
    await target.goto(target.page)
    await target.add_to_cart(data["item"])


def build_script() -> Script:
    """Assemble the checkout script."""
    settings = ConfigLoader.load(Path(__file__).parent / "settings" / "checkout.yaml")
    return Script(
        steps=[
            Step("open shop", open_shop),
            Step("add item", add_item),
            Step("check cart", check_cart),
            Step("newsletter", open_shop, StepOptions(pending=True)),
        ],
        settings=settings,
        recovery_steps={"add item": [Step("reload", reload_page)]},
        hooks=HookSet(before_all=[Hook(open_shop, wait_timeout=5)]),
        test_data=DataFeeder(
            [{"item": "apple"}, {"item": "pear"}, {"item": "fig"}],
            circular=True,
        ),
    )


async def launch(settings: Settings) -> ShopTarget:
    return ShopTarget(settings)


def main() -> None:
    """Run the simple scenario example."""
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    print("=" * 50)
    print("StepFlow Simple Scenario Example")
    print("=" * 50)

    runner = Runner(launch, LoggingReporter())
    result = asyncio.run(runner.run(build_script))

    print("\n--- Summary ---")
    for n, rows in enumerate(result.summaries, start=1):
        print(f"Iteration {n}:")
        for row in rows:
            print(f"  {row.step_name}: {row.result.value}")

    if result.failed:
        print(f"\nRun failed: {result.error}")


if __name__ == "__main__":
    main()

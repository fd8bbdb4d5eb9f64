#!/usr/bin/env python3
"""Live API verification — run with real keys in .env.

Usage:
  1. Fill in GNEWS_API_KEY, EXA_API_KEY and ANTHROPIC_API_KEY in .env
  2. Run: python scripts/verify_apis.py

Steps:
  Step 1: Verify .env configuration
  Step 2: GNews search (GNEWS_API_KEY)
  Step 3: Exa search (EXA_API_KEY)
  Step 4: Claude generative fallback (ANTHROPIC_API_KEY)
  Step 5: Full aggregation path through the router
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  [ok]   {msg}")


def fail(msg: str) -> None:
    print(f"  [fail] {msg}")


def info(msg: str) -> None:
    print(f"  [info] {msg}")


def _masked(key: str) -> str:
    return f"{key[:6]}..." if key else "NOT SET"


async def step1_verify_env() -> bool:
    step_header(1, "Verify .env Configuration")
    from guardnomad.config import settings

    for label, configured, key in (
        ("GNEWS_API_KEY", settings.has_gnews_key, settings.gnews_api_key),
        ("EXA_API_KEY", settings.has_exa_key, settings.exa_api_key),
        ("ANTHROPIC_API_KEY", settings.has_anthropic_key, settings.anthropic_api_key),
    ):
        if configured:
            ok(f"{label}: set ({_masked(key)})")
        else:
            info(f"{label}: not set — that tier will be skipped")

    ok(f"Claude model: {settings.claude_model}")
    ok(f"Demo mode: {settings.is_demo_mode}")
    return not settings.is_demo_mode


async def step2_gnews() -> bool:
    step_header(2, "GNews Search")
    from guardnomad.aggregation.errors import AggregationError
    from guardnomad.config import settings
    from guardnomad.integrations.gnews import GNewsClient

    if not settings.has_gnews_key:
        info("Skipped (no GNEWS_API_KEY)")
        return False

    client = GNewsClient(api_key=settings.gnews_api_key, base_url=settings.gnews_base_url)
    info("travelNews | country=Japan")
    try:
        articles = await client.fetch("travelNews", {"country": "Japan"})
    except AggregationError as e:
        fail(f"{e.code}: {e.message}")
        return False

    if not articles:
        fail("No articles returned")
        return False
    ok(f"Got {len(articles)} articles")
    for a in articles[:3]:
        print(f"    - {a.get('title', '')[:70]}")
    return True


async def step3_exa() -> bool:
    step_header(3, "Exa Search")
    from guardnomad.aggregation.errors import AggregationError
    from guardnomad.config import settings
    from guardnomad.integrations.exa import ExaClient

    if not settings.has_exa_key:
        info("Skipped (no EXA_API_KEY)")
        return False

    client = ExaClient(api_key=settings.exa_api_key, base_url=settings.exa_base_url)
    info("destinationAlerts | destination=Bangkok, Thailand")
    try:
        results = await client.fetch("destinationAlerts", {"destination": "Bangkok, Thailand"})
    except AggregationError as e:
        fail(f"{e.code}: {e.message}")
        return False

    ok(f"Got {len(results)} results")
    for r in results[:3]:
        print(f"    - {(r.get('title') or '')[:70]} | {r.get('url', '')[:50]}")
    return True


async def step4_generative() -> bool:
    step_header(4, "Claude Generative Fallback")
    from guardnomad.aggregation.errors import MalformedGenerativeOutput
    from guardnomad.aggregation.fallback import parse_generated_records
    from guardnomad.aggregation.normalizer import ResponseNormalizer
    from guardnomad.config import settings
    from guardnomad.orchestrator.schemas import Category, SafetyAlert
    from guardnomad.services.generative import ClaudeFallbackGenerator

    if not settings.has_anthropic_key:
        info("Skipped (no ANTHROPIC_API_KEY)")
        return False

    generator = ClaudeFallbackGenerator(
        api_key=settings.anthropic_api_key,
        model=settings.claude_model,
        timeout_seconds=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
    )
    text = await generator.generate("destinationAlerts", {"destination": "Lisbon, Portugal"})
    try:
        records = parse_generated_records(text, ResponseNormalizer(SafetyAlert, Category.SAFETY))
    except MalformedGenerativeOutput as e:
        fail(f"Unusable model output: {e.message}")
        return False

    ok(f"Parsed {len(records)} records")
    for r in records[:3]:
        print(f"    - [{r.severity.value}] {r.title[:60]}")
    return True


async def step5_router() -> bool:
    step_header(5, "Full Aggregation Path")
    from guardnomad.config import settings
    from guardnomad.orchestrator.router import build_router

    router = build_router(settings)
    records = await router.route("safetyAlerts", {"location": "Bangkok"})
    again = await router.route("safetyAlerts", {"location": "Bangkok"})

    ok(f"First call: {len(records)} records")
    stats = router.stats()["news"]
    ok(f"Cache hits after repeat: {stats['cache']['hits']}")
    return bool(records) and len(again) == len(records) and stats["cache"]["hits"] >= 1


async def main():
    print("\nGuardNomad Backend — Live API Verification")
    print("=" * 60)

    results = {}
    results[1] = await step1_verify_env()
    results[2] = await step2_gnews()
    results[3] = await step3_exa()
    results[4] = await step4_generative()
    results[5] = await step5_router()

    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "PASS" if passed else "FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
